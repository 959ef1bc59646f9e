"""Analysis tools: stats file / webpack config in, metrics and reports out.

Every function returns a JSON-ready dict. Failures are reported as
``{"success": False, "message": ..., "error": ...}`` rather than raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..build_config import REPORT_FILENAME
from ..config import AnalyzerConfig, config as default_config
from ..exceptions import StatsFileError, WebpackAnalyzerError
from ..extractor import extract_metrics
from ..models import ExtractionFailed, ServerInfo
from ..paths import resolve_existing_file, resolve_output_dir
from ..processes import ProcessRegistry, get_process_registry
from .build import generate_stats_file, run_webpack_build
from .report import generate_static_report, start_report_server, validate_port

logger = logging.getLogger(__name__)


def load_stats_file(path: Path) -> Any:
    """Read and parse a stats JSON file."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise StatsFileError(f"Could not read stats file: {exc}", {"path": str(path)})
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise StatsFileError(f"Stats file is not valid JSON: {exc}", {"path": str(path)})


def _failure(prefix: str, exc: Exception) -> dict:
    logger.warning("%s: %s", prefix, exc)
    return {
        "success": False,
        "message": f"{prefix}: {exc}",
        "error": type(exc).__name__,
    }


def _summary(headline: str, report_path: Optional[Path], server: Optional[ServerInfo]) -> str:
    if report_path is not None:
        return f"{headline} Report generated at {report_path}"
    if server is not None:
        return f"{headline} Analyzer server running at {server.url}"
    return headline


def analyze_webpack_stats(
    stats_file: str,
    output_dir: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: bool = True,
    generate_report: bool = True,
    cfg: Optional[AnalyzerConfig] = None,
    registry: Optional[ProcessRegistry] = None,
) -> dict:
    """Extract metrics from a stats file and render it as a report or serve it."""
    cfg = cfg or default_config
    report_path: Optional[Path] = None
    server: Optional[ServerInfo] = None

    try:
        server_port = validate_port(port or cfg.analyzer_port)
        stats_path = resolve_existing_file(stats_file, cfg)
        metrics = extract_metrics(load_stats_file(stats_path))

        if generate_report:
            target_dir = resolve_output_dir(output_dir, stats_path.parent, cfg)
            report_path = generate_static_report(stats_path, target_dir / REPORT_FILENAME, open_browser, cfg)
        else:
            server = start_report_server(stats_path, server_port, open_browser, cfg, registry)
    except (WebpackAnalyzerError, OSError) as exc:
        return _failure("Error analyzing webpack stats", exc)

    return {
        "success": True,
        "message": _summary("Webpack stats analyzed successfully.", report_path, server),
        "reportPath": str(report_path) if report_path else None,
        "serverUrl": server.url if server else None,
        "statsPath": str(stats_path),
        "metrics": metrics.to_dict(),
    }


def analyze_webpack_config(
    config_path: str,
    output_dir: Optional[str] = None,
    port: Optional[int] = None,
    open_browser: bool = True,
    generate_report: bool = True,
    cfg: Optional[AnalyzerConfig] = None,
    registry: Optional[ProcessRegistry] = None,
) -> dict:
    """Build a project with the analyzer plugin injected, then report on the result."""
    cfg = cfg or default_config
    report_path: Optional[Path] = None
    server: Optional[ServerInfo] = None

    try:
        server_port = validate_port(port or cfg.analyzer_port)
        resolved_config = resolve_existing_file(config_path, cfg)
        target_dir = resolve_output_dir(output_dir, resolved_config.parent, cfg)
        build = run_webpack_build(resolved_config, target_dir, generate_report, open_browser, cfg)

        stats_path = Path(build.stats_path)
        metrics = extract_metrics(load_stats_file(stats_path))

        if generate_report:
            if build.report_path:
                report_path = Path(build.report_path)
            else:
                # Plugin skipped the report (e.g. a child compiler); render it from the stats
                report_path = generate_static_report(
                    stats_path, Path(build.run_dir) / REPORT_FILENAME, open_browser, cfg
                )
        else:
            server = start_report_server(stats_path, server_port, open_browser, cfg, registry)
    except (WebpackAnalyzerError, OSError) as exc:
        return _failure("Error analyzing webpack config", exc)

    return {
        "success": True,
        "message": _summary("Webpack build analyzed successfully.", report_path, server),
        "reportPath": str(report_path) if report_path else None,
        "serverUrl": server.url if server else None,
        "statsPath": str(stats_path),
        "buildDurationMs": round(build.duration_ms),
        "metrics": metrics.to_dict(),
        "stdout": build.stdout,
        "stderr": build.stderr,
    }


def generate_webpack_stats(
    config_path: str,
    output_path: str = "stats.json",
    cfg: Optional[AnalyzerConfig] = None,
) -> dict:
    """Run ``webpack --json`` and save the stats document for later analysis.

    A relative ``output_path`` is placed next to the webpack config.
    """
    cfg = cfg or default_config
    try:
        resolved_config = resolve_existing_file(config_path, cfg)
        target = Path(output_path).expanduser()
        if not target.is_absolute():
            target = resolved_config.parent / target
        stats_path = generate_stats_file(resolved_config, target, cfg)
        metrics = extract_metrics(load_stats_file(stats_path))
    except (WebpackAnalyzerError, OSError) as exc:
        return _failure("Error generating webpack stats", exc)

    return {
        "success": True,
        "message": f"Stats file generated at {stats_path}",
        "statsPath": str(stats_path),
        "metrics": metrics.to_dict(),
    }


def get_bundle_metrics(stats_file: str, cfg: Optional[AnalyzerConfig] = None) -> dict:
    """Extract metrics from a stats file without rendering a report."""
    cfg = cfg or default_config
    try:
        stats_path = resolve_existing_file(stats_file, cfg)
        metrics = extract_metrics(load_stats_file(stats_path))
    except (WebpackAnalyzerError, OSError) as exc:
        return _failure("Error reading webpack stats", exc)

    if isinstance(metrics, ExtractionFailed):
        return {
            "success": False,
            "message": f"{metrics.error} from {stats_path}",
            "statsPath": str(stats_path),
            "metrics": metrics.to_dict(),
        }

    return {
        "success": True,
        "message": f"Metrics extracted from {stats_path}",
        "statsPath": str(stats_path),
        "metrics": metrics.to_dict(),
    }


def list_analyzer_servers(registry: Optional[ProcessRegistry] = None) -> dict:
    """List analyzer servers started by this process."""
    registry = registry or get_process_registry()
    return {"servers": [info.model_dump() for info in registry.servers()]}


def stop_analyzer_server(server_id: str, registry: Optional[ProcessRegistry] = None) -> dict:
    """Stop an analyzer server by id."""
    registry = registry or get_process_registry()
    stopped = registry.stop(server_id)
    return {"stopped": stopped}
