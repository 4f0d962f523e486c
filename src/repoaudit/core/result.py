"""Result type for check evaluation."""

from pydantic import BaseModel, ConfigDict


class CheckResult(BaseModel):
    """Outcome of one check against one repository."""

    model_config = ConfigDict(frozen=True)

    repository: str
    check: str
    file_path: str
    passed: bool
    error: str | None = None
