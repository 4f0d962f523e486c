"""Base classes for configuration and state models.

Kept separate from config.py so that log.py can build its sink
models on BaseConfig without a circular import.
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Closeable(Protocol):
    """Protocol for objects that support close()."""

    def close(self) -> None:
        """Release resources."""
        ...


class BaseCloseable(BaseModel):
    """Pydantic model that closes its Closeable children.

    Closing walks every field and calls close() on children that
    implement it, continuing past failures. This gives the cascade
    State -> Config -> Logger -> Sink.
    """

    def close(self):
        """Close all closeable child objects."""
        for field_name in self.__class__.model_fields:
            child = getattr(self, field_name, None)
            if child is None:
                continue

            if isinstance(child, Closeable):
                try:
                    child.close()
                except Exception as e:
                    print(
                        f"Warning: Error closing {field_name}: {e}",
                        file=sys.stderr,
                    )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):  # noqa: U100
        self.close()
        return False


class BaseConfig(BaseCloseable):
    """Marker base for configuration sections (YAML/env/CLI)."""
    pass


class BaseState(BaseCloseable):
    """Marker base for runtime state mutated during a run."""
    pass


__all__ = ["Closeable", "BaseCloseable", "BaseConfig", "BaseState"]
