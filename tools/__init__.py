# =============================================================================
# tools/__init__.py
# =============================================================================
# This package is the FastMCP layer of the gateway.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between the MCP protocol and core/:
#     invocation.py    → ToolGate, the wrapper every tool runs through
#     registry.py      → data-driven registration (scrape + dataset tools)
#     browser_tools.py → remote browser tools
#     http_auth.py     → HTTP authentication middleware + ASGI app
#     mcp_server.py    → builds the server and registers the catalogue
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT talk HTTP to the upstream themselves (core/upstream.py does)
#   - They do NOT keep their own counters (the gate owns all shared state)
#   - They do NOT catch errors (the gate normalizes and logs them)
# =============================================================================
