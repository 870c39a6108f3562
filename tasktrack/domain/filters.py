from __future__ import annotations

from dataclasses import dataclass

from .enums import StatusFilter
from .errors import ValidationFailed


@dataclass(frozen=True)
class TaskFilters:
    status: StatusFilter | None = None

    @classmethod
    def from_query(cls, status: str | None) -> "TaskFilters":
        if not status:
            return cls()
        try:
            return cls(status=StatusFilter(status.strip().lower()))
        except ValueError as exc:
            raise ValidationFailed(f"Unknown status filter: {status!r}", field="status") from exc
