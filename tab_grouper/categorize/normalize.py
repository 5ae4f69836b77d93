"""Validate the categorizer's proposed partition against the snapshot."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Iterator

from loguru import logger

from tab_grouper.categorize.errors import PartitionInvalidError
from tab_grouper.categorize.extract import JsonObject

_INDEX_KEY_RE = re.compile(r"^(0|[1-9][0-9]*)$")


@dataclass(frozen=True)
class Group:
    """One named group and the snapshot indices it holds, in display order."""

    name: str
    tab_indices: tuple[int, ...]


@dataclass(frozen=True)
class CanonicalGrouping:
    """A complete, exclusive partition of snapshot indices ``0..size-1``."""

    groups: tuple[Group, ...]
    size: int
    snapshot_id: int | None = None

    def __iter__(self) -> Iterator[Group]:
        return iter(self.groups)

    def __len__(self) -> int:
        return len(self.groups)

    @property
    def names(self) -> list[str]:
        return [group.name for group in self.groups]

    def group(self, name: str) -> Group | None:
        return next((group for group in self.groups if group.name == name), None)

    def as_dict(self) -> dict[str, list[int]]:
        """Flat ``{name: [indices]}`` view, in group order."""
        return {group.name: list(group.tab_indices) for group in self.groups}


@dataclass
class _Problems:
    invalid_entries: list[str]
    duplicate_names: list[str]
    undeclared_groups: list[str]

    @classmethod
    def empty(cls) -> "_Problems":
        return cls(invalid_entries=[], duplicate_names=[], undeclared_groups=[])


def _as_index(value: Any) -> int | None:
    # bool is an int subclass; floats are not coerced.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _items(obj: dict[str, Any]) -> list[tuple[str, Any]]:
    # Repeated JSON keys survive decoding only as pairs.
    if isinstance(obj, JsonObject):
        return obj.pairs
    return list(obj.items())


def is_groups_tabs_shape(raw: Any) -> bool:
    """True for the ``{"groups": [...], "tabs": {...}}`` wire shape."""
    return (
        isinstance(raw, dict)
        and set(raw) == {"groups", "tabs"}
        and isinstance(raw["groups"], list)
        and isinstance(raw["tabs"], dict)
    )


def _from_name_map(raw: dict[str, Any], problems: _Problems) -> list[tuple[str, list[int]]]:
    candidates: list[tuple[str, list[int]]] = []
    seen: set[str] = set()
    for name, values in _items(raw):
        if not isinstance(name, str) or not name.strip():
            problems.invalid_entries.append(f"empty group name {name!r}")
            continue
        if name in seen:
            if name not in problems.duplicate_names:
                problems.duplicate_names.append(name)
        seen.add(name)
        if not isinstance(values, list):
            problems.invalid_entries.append(f"group {name!r}: expected a list of indices")
            continue
        indices: list[int] = []
        for value in values:
            index = _as_index(value)
            if index is None:
                problems.invalid_entries.append(f"group {name!r}: {value!r} is not an index")
                continue
            indices.append(index)
        candidates.append((name, indices))
    return candidates


def _from_groups_tabs(raw: dict[str, Any], problems: _Problems) -> list[tuple[str, list[int]]]:
    members: dict[str, list[int]] = {}
    for name in raw["groups"]:
        if not isinstance(name, str) or not name.strip():
            problems.invalid_entries.append(f"empty group name {name!r}")
            continue
        if name in members:
            problems.duplicate_names.append(name)
            continue
        members[name] = []

    for key, name in _items(raw["tabs"]):
        if not isinstance(key, str) or not _INDEX_KEY_RE.match(key):
            problems.invalid_entries.append(f"tab key {key!r} is not an index")
            continue
        if not isinstance(name, str):
            problems.invalid_entries.append(f"tab {key}: group name {name!r} is not a string")
            continue
        if name not in members:
            if name not in problems.undeclared_groups:
                problems.undeclared_groups.append(name)
            continue
        members[name].append(int(key))

    return [(name, sorted(indices)) for name, indices in members.items()]


def normalize_partition(raw: Any, size: int, *, snapshot_id: int | None = None) -> CanonicalGrouping:
    """
    Turn a decoded categorizer payload into a :class:`CanonicalGrouping`.

    Accepts ``{name: [indices]}`` (group order = key order) and
    ``{"groups": [names], "tabs": {"<index>": name}}`` (group order = ``groups``).
    Nothing is repaired: every index ``0..size-1`` must appear exactly once and
    group names must be unique, otherwise :class:`PartitionInvalidError` is
    raised listing every violation found.
    """
    if not isinstance(raw, dict):
        raise PartitionInvalidError(
            f"Invalid grouping: expected a JSON object, got {type(raw).__name__}",
            invalid_entries=[f"top-level {type(raw).__name__}"],
        )

    problems = _Problems.empty()
    if is_groups_tabs_shape(raw):
        candidates = _from_groups_tabs(raw, problems)
    else:
        candidates = _from_name_map(raw, problems)

    counts: Counter[int] = Counter(index for _, indices in candidates for index in indices)
    out_of_range = [index for index in counts if index < 0 or index >= size]
    duplicated = [index for index, count in counts.items() if count > 1]
    missing = [index for index in range(size) if index not in counts]

    if (
        missing
        or duplicated
        or out_of_range
        or problems.invalid_entries
        or problems.duplicate_names
        or problems.undeclared_groups
    ):
        error = PartitionInvalidError(
            missing=missing,
            duplicated=duplicated,
            out_of_range=out_of_range,
            duplicate_names=problems.duplicate_names,
            undeclared_groups=problems.undeclared_groups,
            invalid_entries=problems.invalid_entries,
        )
        logger.warning(f"Rejected grouping for {size} tabs: {error}")
        raise error

    grouping = CanonicalGrouping(
        groups=tuple(Group(name=name, tab_indices=tuple(indices)) for name, indices in candidates),
        size=size,
        snapshot_id=snapshot_id,
    )
    logger.info(f"Accepted grouping: {len(grouping)} groups over {size} tabs")
    return grouping
