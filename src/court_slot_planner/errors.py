from __future__ import annotations

from typing import Any, Mapping, Optional


class CourtPlannerError(Exception):
    """Base class for errors raised by the planner."""


class DataFetchError(CourtPlannerError):
    """A read against the data store failed."""

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class RecordValidationError(DataFetchError):
    """A fetched record is missing fields or has values out of range."""


class InvariantViolation(CourtPlannerError):
    """Two claims cover the same hour, or two active bands overlap."""

    def __init__(
        self,
        message: str,
        *,
        conflicts: Optional[Mapping[int, tuple[Any, ...]]] = None,
    ) -> None:
        super().__init__(message)
        self.conflicts: dict[int, tuple[Any, ...]] = dict(conflicts or {})
