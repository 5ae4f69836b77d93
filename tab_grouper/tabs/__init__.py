"""Tab data types and the browser tab boundary."""

from tab_grouper.tabs.models import IndexedTab, Tab, TabSnapshot

__all__ = ["IndexedTab", "Tab", "TabSnapshot"]
