"""Categorization protocol: provider registry, relay client, payload extraction and validation."""

from tab_grouper.categorize.client import CategorizerClient
from tab_grouper.categorize.errors import (
    CategorizationError,
    ConfigError,
    DecodeError,
    ExtractionError,
    PartitionInvalidError,
    StaleSnapshotError,
    TransportError,
)
from tab_grouper.categorize.extract import extract_json_block
from tab_grouper.categorize.normalize import CanonicalGrouping, Group, normalize_partition
from tab_grouper.categorize.registry import PROVIDER_DEFS, get_provider_def

__all__ = [
    "CanonicalGrouping",
    "CategorizationError",
    "CategorizerClient",
    "ConfigError",
    "DecodeError",
    "ExtractionError",
    "Group",
    "PROVIDER_DEFS",
    "PartitionInvalidError",
    "StaleSnapshotError",
    "TransportError",
    "extract_json_block",
    "get_provider_def",
    "normalize_partition",
]
