"""Workflow nodes for the audit graph."""

from repoaudit.workflow.nodes.audit_repository import AuditRepository
from repoaudit.workflow.nodes.initialize import Initialize
from repoaudit.workflow.nodes.report import Report

__all__ = [
    "Initialize",
    "AuditRepository",
    "Report",
]
