# Parlance Command Framework — (c) 2025 rtj.dev LLC — MIT Licensed
"""
Defines `CommandResult`, the summary an executor returns after running.

All counters are optional; an executor that has nothing to report returns
`CommandResult.empty()` (or `None`, which dispatch treats the same way).

Example:
    return CommandResult.affected_entities_of(3)
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CommandResult(BaseModel):
    """Immutable outcome of a command execution."""

    model_config = ConfigDict(frozen=True)

    success_count: int | None = Field(default=None, ge=0)
    affected_blocks: int | None = Field(default=None, ge=0)
    affected_entities: int | None = Field(default=None, ge=0)
    affected_items: int | None = Field(default=None, ge=0)
    query_result: int | None = None

    @classmethod
    def empty(cls) -> CommandResult:
        return cls()

    @classmethod
    def success(cls) -> CommandResult:
        return cls(success_count=1)

    @classmethod
    def success_count_of(cls, count: int) -> CommandResult:
        return cls(success_count=count)

    @classmethod
    def affected_blocks_of(cls, count: int) -> CommandResult:
        return cls(affected_blocks=count)

    @classmethod
    def affected_entities_of(cls, count: int) -> CommandResult:
        return cls(affected_entities=count)

    @classmethod
    def affected_items_of(cls, count: int) -> CommandResult:
        return cls(affected_items=count)

    @classmethod
    def query_result_of(cls, value: int) -> CommandResult:
        return cls(query_result=value)

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())

    def summary(self) -> str:
        """Human-readable summary of the reported counters."""
        parts = [
            f"{name.replace('_', ' ')}: {value}"
            for name, value in self.model_dump().items()
            if value is not None
        ]
        return ", ".join(parts) if parts else "no result"
