"""Webpack bundle analysis for MCP clients.

Reads (or builds) a webpack stats document, reduces it to a compact metrics
report and hands report rendering to webpack-bundle-analyzer.
"""

__version__ = "0.1.0"
