"""Rule-based normalizer for documents in the user collection."""

import copy
from collections.abc import Mapping
from typing import Any

from bson import ObjectId

from migrator.normalization.base import BaseNormalizer
from migrator.normalization.models import (
    ConfusedId,
    NormalizationOutcome,
    NullEmail,
    Patch,
    UnhandledType,
)

CHECKLIST_FIELDS = (
    "savedChallenges",
    "badges",
    "partiallyCompletedChallenges",
    "completedChallenges",
    "progressTimestamps",
    "profileUI",
)

LEGACY_FIELDS = frozenset({
    "password",
    "isGithub",
    "isLinkedIn",
    "isTwitter",
    "isWebsite",
})

# Bookkeeping keys left behind by the old ORM on embedded documents.
INTERNAL_KEYS = (
    "__cachedRelations",
    "__data",
    "__dataSource",
    "__persisted",
    "__strict",
)


class _Uncoercible(Exception):
    pass


class UserNormalizer(BaseNormalizer):
    """Classifies user records and builds their normalization patch.

    Checks run in a fixed order: identifier, then email, then per-field
    coercion. The first failing check decides the outcome.
    """

    def __init__(self, *, years_field: str = "yearsActive") -> None:
        self._years_field = years_field

    def normalize(self, record: Mapping[str, Any]) -> NormalizationOutcome:
        """Map one raw record to exactly one outcome. Never mutates ``record``."""
        if "_id" not in record:
            return UnhandledType(record_id=ObjectId(), snapshot=copy.deepcopy(dict(record)))
        record_id = record["_id"]
        if not isinstance(record_id, ObjectId):
            return ConfusedId(document=copy.deepcopy(dict(record)))

        if record.get("email") is None:
            return NullEmail(document=copy.deepcopy(dict(record)))

        set_fields: dict[str, Any] = {
            name: [] for name in CHECKLIST_FIELDS if record.get(name) is None
        }

        years = record.get(self._years_field)
        try:
            coerced = self._coerce_years(years)
        except _Uncoercible:
            return UnhandledType(
                record_id=record_id,
                snapshot={self._years_field: copy.deepcopy(years)},
            )
        if coerced is not None:
            set_fields[self._years_field] = coerced

        return Patch(set_fields=set_fields, unset_fields=_legacy_paths(record))

    @staticmethod
    def _coerce_years(value: Any) -> list[float] | None:
        """Return the canonical list, or None when ``value`` already is one."""
        if value is None:
            return []
        if not isinstance(value, list):
            raise _Uncoercible
        if all(type(year) is float for year in value):
            return None
        return [_coerce_year(year) for year in value]


def _coerce_year(value: Any) -> float:
    # bool is an int subclass and must not be widened
    if isinstance(value, bool):
        raise _Uncoercible
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError as exc:
            raise _Uncoercible from exc
    if isinstance(value, str):
        # only plain ASCII literals; float() alone would take " 2020 " or "1_000"
        if value != value.strip() or "_" in value or not value.isascii():
            raise _Uncoercible
        try:
            return float(value)
        except ValueError as exc:
            raise _Uncoercible from exc
    raise _Uncoercible


def _legacy_paths(record: Mapping[str, Any]) -> frozenset[str]:
    """Collect the paths to unset, addressing nested keys by array index.

    Only keys that are actually present are returned, so the directive never
    touches a missing array or collides with a field set in the same update.
    """
    paths = {name for name in LEGACY_FIELDS if name in record}

    completed = record.get("completedChallenges")
    if isinstance(completed, list):
        for i, challenge in enumerate(completed):
            prefix = f"completedChallenges.{i}"
            paths.update(_internal_paths(challenge, prefix))
            files = challenge.get("files") if isinstance(challenge, dict) else None
            if isinstance(files, list):
                for j, challenge_file in enumerate(files):
                    paths.update(_internal_paths(challenge_file, f"{prefix}.files.{j}"))

    profile_ui = record.get("profileUI")
    if isinstance(profile_ui, list):
        for i, element in enumerate(profile_ui):
            paths.update(_internal_paths(element, f"profileUI.{i}"))
    elif isinstance(profile_ui, dict):
        paths.update(_internal_paths(profile_ui, "profileUI"))

    return frozenset(paths)


def _internal_paths(element: Any, prefix: str) -> list[str]:
    if not isinstance(element, dict):
        return []
    return [f"{prefix}.{key}" for key in INTERNAL_KEYS if key in element]
