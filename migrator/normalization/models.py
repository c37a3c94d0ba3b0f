from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId, json_util


@dataclass(frozen=True)
class Patch:
    """Point-update directive for one user record."""

    set_fields: dict[str, Any] = field(default_factory=dict)
    unset_fields: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.set_fields and not self.unset_fields

    def to_update(self) -> dict[str, dict[str, Any]]:
        """Build the MongoDB update document, omitting empty operators."""
        update: dict[str, dict[str, Any]] = {}
        if self.set_fields:
            update["$set"] = dict(self.set_fields)
        if self.unset_fields:
            update["$unset"] = {path: "" for path in sorted(self.unset_fields)}
        return update


@dataclass(frozen=True)
class UnhandledType:
    """A value the normalizer cannot coerce, or a record without an ``_id``.

    ``record_id`` is synthesized when the record has none; it is only ever
    written to the error log.
    """

    record_id: ObjectId
    snapshot: dict[str, Any]

    def log_line(self) -> str:
        return f"{self.record_id}: {json_util.dumps(self.snapshot)}"


@dataclass(frozen=True)
class ConfusedId:
    """A record whose ``_id`` cannot be used to address it safely."""

    document: dict[str, Any]

    def log_line(self) -> str:
        return f"Confused ID: {json_util.dumps(self.document)}"


@dataclass(frozen=True)
class NullEmail:
    """A record whose email is null or missing; it is moved to recovery."""

    document: dict[str, Any]

    @property
    def record_id(self) -> ObjectId:
        return self.document["_id"]


NormalizationOutcome = Patch | UnhandledType | ConfusedId | NullEmail
