"""Temporary webpack config that wraps a project config with BundleAnalyzerPlugin.

The wrapper is written as ES module source (``.mjs``) when the project config
is an ES module, otherwise as CommonJS (``.cjs``). It accepts object, array,
promise and function style configs; for arrays only the first config gets the
plugin so the stats file is written once.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

WRAPPER_BASENAME = "webpack.analyzer.config"
STATS_FILENAME = "stats.json"
REPORT_FILENAME = "report.html"

ESM_SUFFIXES = {".mjs", ".mts"}
CJS_SUFFIXES = {".cjs", ".cts"}

_PLUGIN_OPTIONS = """{{
    analyzerMode: {mode},
    reportFilename: {report},
    openAnalyzer: {open_analyzer},
    generateStatsFile: true,
    statsFilename: {stats},
    statsOptions: null,
    excludeAssets: null,
    logLevel: 'info',
  }}"""

_WRAPPER_BODY = """
const withAnalyzer = (config) => ({{
  ...config,
  plugins: [
    ...((config && config.plugins) || []),
    new BundleAnalyzerPlugin({options}),
  ],
}});

const build = async (...args) => {{
  const config = typeof baseConfig === 'function' ? await baseConfig(...args) : await baseConfig;
  if (Array.isArray(config)) {{
    return config.map((entry, index) => (index === 0 ? withAnalyzer(entry) : entry));
  }}
  return withAnalyzer(config);
}};
"""

_ESM_TEMPLATE = """import {{ BundleAnalyzerPlugin }} from 'webpack-bundle-analyzer';
import baseConfig from {base};
{body}
export default build;
"""

_CJS_TEMPLATE = """const {{ BundleAnalyzerPlugin }} = require('webpack-bundle-analyzer');
const loaded = require({base});
const baseConfig = loaded && loaded.__esModule ? loaded.default : loaded;
{body}
module.exports = build;
"""


def _package_type(start: Path) -> str | None:
    """``type`` field of the nearest package.json above ``start``."""
    for directory in [start, *start.parents]:
        manifest = directory / "package.json"
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Could not read %s: %s", manifest, exc)
                return None
            return data.get("type") if isinstance(data, dict) else None
    return None


def is_esm_config(config_path: Path) -> bool:
    """Whether the project config has to be loaded with ``import``."""
    suffix = config_path.suffix.lower()
    if suffix in ESM_SUFFIXES:
        return True
    if suffix in CJS_SUFFIXES:
        return False
    return _package_type(config_path.parent) == "module"


def render_analyzer_config(
    config_path: Path,
    run_dir: Path,
    generate_report: bool = True,
    open_browser: bool = True,
    esm: bool | None = None,
) -> str:
    """Render the wrapper config source.

    The plugin writes ``stats.json`` (and ``report.html`` in static mode) into
    ``run_dir``.
    """
    if esm is None:
        esm = is_esm_config(config_path)

    options = _PLUGIN_OPTIONS.format(
        mode="'static'" if generate_report else "'disabled'",
        report=json.dumps(str(run_dir / REPORT_FILENAME)),
        open_analyzer="true" if generate_report and open_browser else "false",
        stats=json.dumps(str(run_dir / STATS_FILENAME)),
    )
    body = _WRAPPER_BODY.format(options=options)

    if esm:
        return _ESM_TEMPLATE.format(base=json.dumps(config_path.resolve().as_uri()), body=body)
    return _CJS_TEMPLATE.format(base=json.dumps(str(config_path.resolve())), body=body)


def write_analyzer_config(
    config_path: Path,
    run_dir: Path,
    generate_report: bool = True,
    open_browser: bool = True,
) -> Path:
    """Write the wrapper config into ``run_dir`` and return its path."""
    esm = is_esm_config(config_path)
    wrapper = run_dir / f"{WRAPPER_BASENAME}{'.mjs' if esm else '.cjs'}"
    wrapper.write_text(
        render_analyzer_config(config_path, run_dir, generate_report, open_browser, esm=esm),
        encoding="utf-8",
    )
    logger.info("Wrote analyzer config %s (wrapping %s)", wrapper, config_path)
    return wrapper
