"""Webpack Analyzer MCP server."""

import logging
import signal
from typing import Optional

from fastmcp import FastMCP

from .config import config
from .processes import get_process_registry
from .tools.analysis import (
    analyze_webpack_config as _analyze_webpack_config,
    analyze_webpack_stats as _analyze_webpack_stats,
    generate_webpack_stats as _generate_webpack_stats,
    get_bundle_metrics as _get_bundle_metrics,
    list_analyzer_servers as _list_analyzer_servers,
    stop_analyzer_server as _stop_analyzer_server,
)

logger = logging.getLogger(__name__)

mcp = FastMCP("Webpack Analyzer")


@mcp.tool()
def analyze_webpack_stats(
    stats_file: str,
    output_dir: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: bool = True,
    generate_report: bool = True,
) -> dict:
    """Analyze a webpack stats JSON file and generate a report.

    Args:
        stats_file: Path to the webpack stats JSON file.
        output_dir: Directory for report.html (defaults to the stats file directory).
        port: Port for the analyzer server when generate_report is false (defaults to 8888).
        open_browser: Whether to open the report in a browser.
        generate_report: Generate a static HTML report (true) or start an analyzer server (false).

    Returns:
        {success, message, reportPath, serverUrl, statsPath, metrics}
    """
    return _analyze_webpack_stats(stats_file, output_dir, port, open_browser, generate_report)


@mcp.tool()
def analyze_webpack_config(
    config_path: str,
    output_dir: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: bool = True,
    generate_report: bool = True,
) -> dict:
    """Analyze a webpack configuration by building the project and generating a report.

    Args:
        config_path: Path to the webpack configuration file.
        output_dir: Directory for build artifacts (defaults to the config directory).
            Each call writes into its own webpack-analyzer-* subdirectory.
        port: Port for the analyzer server when generate_report is false (defaults to 8888).
        open_browser: Whether to open the report in a browser.
        generate_report: Generate a static HTML report (true) or start an analyzer server (false).

    Returns:
        {success, message, reportPath, serverUrl, statsPath, buildDurationMs, metrics, stdout, stderr}
    """
    return _analyze_webpack_config(config_path, output_dir, port, open_browser, generate_report)


@mcp.tool()
def generate_webpack_stats(config_path: str, output_path: str = "stats.json") -> dict:
    """Run webpack with --json and save the stats file for later analysis."""
    return _generate_webpack_stats(config_path, output_path)


@mcp.tool()
def get_bundle_metrics(stats_file: str) -> dict:
    """Summarize a webpack stats file: sizes, largest modules/chunks, health indicators."""
    return _get_bundle_metrics(stats_file)


@mcp.tool()
def list_analyzer_servers() -> dict:
    """List webpack-bundle-analyzer servers started by this MCP server."""
    return _list_analyzer_servers()


@mcp.tool()
def stop_analyzer_server(server_id: str) -> dict:
    """Stop a webpack-bundle-analyzer server started by analyze_webpack_stats/config."""
    return _stop_analyzer_server(server_id)


def _handle_termination(signum, frame) -> None:
    raise SystemExit(0)


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    signal.signal(signal.SIGTERM, _handle_termination)

    logger.info("Webpack Analyzer MCP server starting (transport: %s)", config.transport)
    logger.info("Project directory: %s", config.project_dir)
    try:
        if config.transport == "sse":
            mcp.run(transport="sse", port=config.mcp_port)
        else:
            mcp.run()
    except KeyboardInterrupt:
        pass
    finally:
        get_process_registry().stop_all()
        logger.info("Webpack Analyzer MCP server stopped")


if __name__ == "__main__":
    main()
