"""Error taxonomy for the categorization pipeline."""

from __future__ import annotations


class CategorizationError(Exception):
    """Base class for every failure that ends one categorization request."""


class ConfigError(CategorizationError):
    """Unknown provider selector or missing configuration."""


class TransportError(CategorizationError):
    """The relay could not be reached, answered non-2xx, or sent an unusable body."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ExtractionError(CategorizationError):
    """The model text contains no fenced block."""


class DecodeError(CategorizationError):
    """The fenced block is not valid JSON."""


class PartitionInvalidError(CategorizationError):
    """The decoded grouping is not a complete, exclusive partition of the snapshot."""

    def __init__(
        self,
        message: str = "",
        *,
        missing: list[int] | None = None,
        duplicated: list[int] | None = None,
        out_of_range: list[int] | None = None,
        duplicate_names: list[str] | None = None,
        undeclared_groups: list[str] | None = None,
        invalid_entries: list[str] | None = None,
    ) -> None:
        self.missing = sorted(missing or [])
        self.duplicated = sorted(duplicated or [])
        self.out_of_range = sorted(out_of_range or [])
        self.duplicate_names = list(duplicate_names or [])
        self.undeclared_groups = list(undeclared_groups or [])
        self.invalid_entries = list(invalid_entries or [])
        super().__init__(message or self.describe())

    def describe(self) -> str:
        parts: list[str] = []
        if self.missing:
            parts.append(f"missing indices {self.missing}")
        if self.duplicated:
            parts.append(f"duplicated indices {self.duplicated}")
        if self.out_of_range:
            parts.append(f"out-of-range indices {self.out_of_range}")
        if self.duplicate_names:
            parts.append(f"duplicate group names {self.duplicate_names}")
        if self.undeclared_groups:
            parts.append(f"undeclared groups {self.undeclared_groups}")
        if self.invalid_entries:
            parts.append(f"invalid entries {self.invalid_entries}")
        detail = "; ".join(parts) or "invalid partition"
        return f"Invalid grouping: {detail}"


class StaleSnapshotError(PartitionInvalidError):
    """A grouping was applied against a different snapshot than it was built for."""
