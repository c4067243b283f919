"""Outcome of one poll invocation."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from pynotionpoll.models.changes import ChangeSet


class InvocationResult(BaseModel):
    """Success carries the change counts; failure carries an error message."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ok: bool
    status_code: int
    created_count: int = 0
    updated_count: int = 0
    deleted_count: int = 0
    error: str | None = None

    @classmethod
    def success(cls, changes: ChangeSet) -> InvocationResult:
        return cls(
            ok=True,
            status_code=200,
            created_count=len(changes.created),
            updated_count=len(changes.updated),
            deleted_count=len(changes.deleted),
        )

    @classmethod
    def failure(cls, error: BaseException) -> InvocationResult:
        message = str(error) or type(error).__name__
        return cls(ok=False, status_code=500, error=message)

    def to_body(self) -> dict[str, Any]:
        """JSON body returned to the trigger."""
        if not self.ok:
            return {"error": self.error}
        return {
            "message": "Polling complete",
            "createdCount": self.created_count,
            "updatedCount": self.updated_count,
            "deletedCount": self.deleted_count,
        }
