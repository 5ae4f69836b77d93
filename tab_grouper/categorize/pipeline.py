"""Snapshot -> categorizer -> normalizer pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from loguru import logger

from tab_grouper.categorize.client import CategorizerClient
from tab_grouper.categorize.normalize import CanonicalGrouping, normalize_partition
from tab_grouper.categorize.registry import get_provider_def
from tab_grouper.tabs.models import TabSnapshot
from tab_grouper.tabs.oracle import TabOracle
from tab_grouper.tabs.snapshot import build_snapshot

StatusCallback = Callable[[str], None]


@dataclass(frozen=True)
class CategorizationResult:
    """A validated grouping together with the snapshot it indexes into."""

    snapshot: TabSnapshot
    grouping: CanonicalGrouping


class CategorizationPipeline:
    """Run one categorization request end to end, without touching the tree."""

    def __init__(self, oracle: TabOracle, client: CategorizerClient) -> None:
        self.oracle = oracle
        self.client = client

    async def run(self, provider: str, on_status: StatusCallback | None = None) -> CategorizationResult:
        """
        Snapshot the window, ask the categorizer, and validate its answer.

        Every :class:`~tab_grouper.categorize.errors.CategorizationError`
        propagates to the caller.
        """
        status = on_status or (lambda _text: None)

        # Fail on a bad selector before doing any work.
        get_provider_def(provider)

        snapshot = await build_snapshot(self.oracle)
        status("Categorizing tabs...")
        status("Sending request to local server...")
        raw = await self.client.categorize(snapshot, provider)

        status("Processing server response...")
        grouping = normalize_partition(raw, len(snapshot), snapshot_id=snapshot.snapshot_id)
        logger.info(f"Categorization of snapshot {snapshot.snapshot_id} produced {len(grouping)} groups")
        return CategorizationResult(snapshot=snapshot, grouping=grouping)
