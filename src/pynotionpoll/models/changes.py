"""Change set produced by comparing two version-marker maps."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator


class ChangeSet(BaseModel):
    """Ids that were created, updated or deleted between two observations.

    An id belongs to at most one of the three groups; unchanged ids are
    absent. The sequence order inside each group carries no meaning.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    created: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_disjoint(self) -> ChangeSet:
        groups = {"created": self.created, "updated": self.updated, "deleted": self.deleted}
        seen: dict[str, str] = {}
        for name, ids in groups.items():
            for item_id in ids:
                previous = seen.get(item_id)
                if previous is not None:
                    raise ValueError(f"id {item_id!r} appears in both {previous} and {name}")
                seen[item_id] = name
        return self

    @property
    def total(self) -> int:
        return len(self.created) + len(self.updated) + len(self.deleted)

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def counts(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "deleted": len(self.deleted),
        }
