"""Audit workflow graph."""
