"""Environment-based configuration for the Webpack Analyzer server."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %d", name, raw, default)
        return default


class AnalyzerConfig:
    """Server configuration loaded from environment variables."""

    def __init__(self) -> None:
        self.project_dir = Path(os.environ.get("PROJECT_DIR", os.getcwd()))

        # Extra directories searched when resolving relative paths
        roots = os.environ.get("WEBPACK_ANALYZER_ROOTS", "")
        self.extra_roots: list[Path] = [Path(r) for r in roots.split(os.pathsep) if r.strip()]

        # webpack-bundle-analyzer server defaults
        self.analyzer_host = os.environ.get("WEBPACK_ANALYZER_HOST", "127.0.0.1")
        self.analyzer_port = _env_int("WEBPACK_ANALYZER_PORT", 8888)

        # External tooling
        self.npx = os.environ.get("WEBPACK_ANALYZER_NPX", "npx")
        self.build_timeout = _env_int("WEBPACK_ANALYZER_BUILD_TIMEOUT", 600)
        self.report_timeout = _env_int("WEBPACK_ANALYZER_REPORT_TIMEOUT", 120)

        # MCP transport
        self.transport = os.environ.get("WEBPACK_ANALYZER_TRANSPORT", "stdio")
        self.mcp_port = _env_int("WEBPACK_ANALYZER_MCP_PORT", 3104)

        self.log_level = os.environ.get("WEBPACK_ANALYZER_LOG_LEVEL", "INFO").upper()

    def server_url(self, port: int) -> str:
        return f"http://{self.analyzer_host}:{port}"


# Singleton
config = AnalyzerConfig()
