"""Local HTTP relay between the sidebar and the upstream LLM providers."""

from tab_grouper.relay.server import RelayServer, serve
from tab_grouper.relay.upstream import UpstreamError, forward

__all__ = ["RelayServer", "UpstreamError", "forward", "serve"]
