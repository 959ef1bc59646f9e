"""webpack build wrapper: runs ``npx webpack`` with the analyzer plugin injected."""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
import time
from pathlib import Path

from ..build_config import REPORT_FILENAME, STATS_FILENAME, write_analyzer_config
from ..config import AnalyzerConfig, config as default_config
from ..exceptions import BuildError
from ..models import BuildResult

logger = logging.getLogger(__name__)

OUTPUT_LIMIT = 4000


def truncate_output(text: str, limit: int = OUTPUT_LIMIT) -> str:
    """Keep the tail of long process output, where webpack prints errors."""
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


def new_run_dir(output_dir: Path) -> Path:
    """Create a private directory for one build so concurrent runs never share files."""
    return Path(tempfile.mkdtemp(prefix="webpack-analyzer-", dir=str(output_dir)))


def _run_webpack(cmd: list[str], cwd: Path, timeout: int) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise BuildError(f"webpack build timed out after {timeout} seconds")
    except FileNotFoundError:
        raise BuildError(f"'{cmd[0]}' not found. Install Node.js to run webpack builds.")


def _build_into(
    run_dir: Path,
    config_path: Path,
    generate_report: bool,
    open_browser: bool,
    cfg: AnalyzerConfig,
) -> subprocess.CompletedProcess:
    wrapper = write_analyzer_config(config_path, run_dir, generate_report, open_browser)
    cmd = [cfg.npx, "webpack", "--config", str(wrapper)]
    logger.info("Running webpack build for %s in %s", config_path, run_dir)
    try:
        result = _run_webpack(cmd, config_path.parent, cfg.build_timeout)
    finally:
        wrapper.unlink(missing_ok=True)

    if result.returncode != 0:
        detail = result.stderr.strip() or result.stdout.strip()
        raise BuildError(
            f"webpack exited with code {result.returncode}: {truncate_output(detail, 500)}",
            {"config": str(config_path)},
        )

    stats_path = run_dir / STATS_FILENAME
    if not stats_path.is_file():
        raise BuildError("webpack finished but no stats file was written", {"expected": str(stats_path)})
    return result


def run_webpack_build(
    config_path: Path,
    output_dir: Path,
    generate_report: bool = True,
    open_browser: bool = True,
    cfg: AnalyzerConfig | None = None,
) -> BuildResult:
    """Build the project with BundleAnalyzerPlugin and collect its stats file.

    The wrapper config, ``stats.json`` and (in static mode) ``report.html``
    are written to a new run directory under ``output_dir``. The wrapper is
    removed afterwards.

    Raises:
        BuildError: on a failed, timed out or unstartable build, or when the
            build finished without writing a stats file.
    """
    cfg = cfg or default_config
    run_dir = new_run_dir(output_dir)
    started = time.monotonic()
    try:
        result = _build_into(run_dir, config_path, generate_report, open_browser, cfg)
    except Exception:
        # A failed run leaves nothing behind
        shutil.rmtree(run_dir, ignore_errors=True)
        raise
    duration_ms = (time.monotonic() - started) * 1000

    stats_path = run_dir / STATS_FILENAME
    report_path = run_dir / REPORT_FILENAME
    logger.info("webpack build finished in %.0f ms", duration_ms)
    return BuildResult(
        run_dir=str(run_dir),
        stats_path=str(stats_path),
        report_path=str(report_path) if generate_report and report_path.is_file() else None,
        stdout=truncate_output(result.stdout),
        stderr=truncate_output(result.stderr),
        duration_ms=duration_ms,
    )


def generate_stats_file(
    config_path: Path,
    output_path: Path,
    cfg: AnalyzerConfig | None = None,
) -> Path:
    """Run ``webpack --json`` with the project config and save the stats document."""
    cfg = cfg or default_config
    cmd = [cfg.npx, "webpack", "--config", str(config_path), "--json"]
    logger.info("Generating stats for %s", config_path)
    result = _run_webpack(cmd, config_path.parent, cfg.build_timeout)

    if result.returncode != 0 or not result.stdout.strip():
        detail = result.stderr.strip() or result.stdout.strip()
        raise BuildError(
            f"webpack --json exited with code {result.returncode}: {truncate_output(detail, 500)}",
            {"config": str(config_path)},
        )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.stdout, encoding="utf-8")
    logger.info("Stats written to %s", output_path)
    return output_path
