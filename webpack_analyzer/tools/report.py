"""webpack-bundle-analyzer wrapper: static HTML reports and report servers."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..config import AnalyzerConfig, config as default_config
from ..exceptions import ReportError
from ..models import ServerInfo
from ..processes import ProcessRegistry, get_process_registry
from .build import truncate_output

logger = logging.getLogger(__name__)

# Seconds to watch a freshly started server for an immediate crash
STARTUP_GRACE = 1.5


def validate_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ReportError(f"Invalid port: {port!r} (expected 1-65535)")
    return port


def analyzer_command(
    stats_path: Path,
    mode: str,
    open_browser: bool,
    cfg: AnalyzerConfig,
) -> list[str]:
    cmd = [cfg.npx, "webpack-bundle-analyzer", str(stats_path), "--mode", mode]
    if not open_browser:
        cmd.append("--no-open")
    return cmd


def generate_static_report(
    stats_path: Path,
    report_path: Path,
    open_browser: bool = True,
    cfg: AnalyzerConfig | None = None,
) -> Path:
    """Render ``stats_path`` into a standalone HTML report.

    Raises:
        ReportError: if the analyzer fails, times out or is not installed.
    """
    cfg = cfg or default_config
    cmd = analyzer_command(stats_path, "static", open_browser, cfg) + ["--report", str(report_path)]

    try:
        result = subprocess.run(
            cmd,
            cwd=str(stats_path.parent),
            capture_output=True,
            text=True,
            timeout=cfg.report_timeout,
        )
    except subprocess.TimeoutExpired:
        raise ReportError(f"Report generation timed out after {cfg.report_timeout} seconds")
    except FileNotFoundError:
        raise ReportError(f"'{cmd[0]}' not found. Install Node.js to generate reports.")

    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        raise ReportError(
            f"webpack-bundle-analyzer exited with code {result.returncode}: {truncate_output(detail, 500)}"
        )
    if not report_path.is_file():
        raise ReportError("webpack-bundle-analyzer did not write a report", {"expected": str(report_path)})

    logger.info("Report generated at %s", report_path)
    return report_path


def start_report_server(
    stats_path: Path,
    port: int,
    open_browser: bool = True,
    cfg: AnalyzerConfig | None = None,
    registry: ProcessRegistry | None = None,
) -> ServerInfo:
    """Start a webpack-bundle-analyzer server for ``stats_path`` in the background.

    The process is owned by the registry and stopped on server shutdown.
    """
    cfg = cfg or default_config
    registry = registry or get_process_registry()
    validate_port(port)

    cmd = analyzer_command(stats_path, "server", open_browser, cfg) + [
        "--host",
        cfg.analyzer_host,
        "--port",
        str(port),
    ]
    log_path = stats_path.parent / f"analyzer-server-{port}.log"

    try:
        handle_id, proc = registry.spawn(cmd, log_path, cwd=stats_path.parent)
    except FileNotFoundError:
        raise ReportError(f"'{cmd[0]}' not found. Install Node.js to start the analyzer server.")

    try:
        exit_code = proc.wait(timeout=STARTUP_GRACE)
    except subprocess.TimeoutExpired:
        pass  # still running
    else:
        registry.stop(handle_id)
        output = log_path.read_text(errors="replace") if log_path.exists() else ""
        raise ReportError(
            f"Analyzer server exited with code {exit_code}: {truncate_output(output.strip(), 500)}",
            {"port": port},
        )

    server = ServerInfo(
        id=handle_id,
        url=cfg.server_url(port),
        pid=proc.pid,
        stats_path=str(stats_path),
    )
    registry.register_server(server)
    return server
