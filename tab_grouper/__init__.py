"""tab-grouper - sort browser tabs into task groups with an LLM categorizer."""

__version__ = "0.1.0"
__logo__ = "▤"
