# =============================================================================
# core/__init__.py
# =============================================================================
# The engine of the tool gateway: authentication, rate limiting, usage
# counters, the upstream HTTP client, the snapshot poller and the dataset
# catalogue.
#
# CRITICAL ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or any server framework.  Every
#   module here can be exercised with plain pytest and a fake HTTP transport.
#   The tools/ layer is the only place that knows it is serving MCP.
# =============================================================================
