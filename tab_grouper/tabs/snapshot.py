"""Build an indexed snapshot of the current window's tabs."""

from __future__ import annotations

import asyncio

from loguru import logger

from tab_grouper.tabs.models import Tab, TabSnapshot
from tab_grouper.tabs.oracle import TabLookupError, TabOracle


async def resolve_opener(oracle: TabOracle, tab: Tab) -> Tab | None:
    """Look up the tab that opened ``tab``; ``None`` when unknown or closed."""
    if tab.opener_id is None:
        return None
    try:
        return await oracle.get_tab(tab.opener_id)
    except TabLookupError as exc:
        logger.debug("Opener lookup failed for tab {}: {}", tab.id, exc)
        return None
    except Exception as exc:
        # Browser boundaries reject with generic errors for closed tabs.
        logger.debug("Opener lookup errored for tab {}: {!r}", tab.id, exc)
        return None


async def build_snapshot(oracle: TabOracle) -> TabSnapshot:
    """
    Capture all tabs in query order with their best-effort parent titles.

    A failed opener lookup degrades to "no parent" and never fails the
    snapshot.
    """
    tabs = await oracle.query_tabs()
    openers = await asyncio.gather(*(resolve_opener(oracle, tab) for tab in tabs))
    parent_titles = [opener.title if opener is not None else None for opener in openers]
    snapshot = TabSnapshot.from_tabs(tabs, parent_titles)
    logger.info(f"Snapshot {snapshot.snapshot_id}: {len(snapshot)} tabs")
    return snapshot
