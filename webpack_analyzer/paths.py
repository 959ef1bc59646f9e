"""Path resolution against the project's candidate root directories."""

from __future__ import annotations

import os
from pathlib import Path

from .config import AnalyzerConfig, config as default_config
from .exceptions import PathResolutionError


def candidate_roots(cfg: AnalyzerConfig | None = None) -> list[Path]:
    """Directories searched for relative paths: PROJECT_DIR, cwd, then extra roots."""
    cfg = cfg or default_config
    roots: list[Path] = []
    for root in [cfg.project_dir, Path(os.getcwd()), *cfg.extra_roots]:
        resolved = root.expanduser().resolve()
        if resolved not in roots:
            roots.append(resolved)
    return roots


def resolve_existing_file(path: str, cfg: AnalyzerConfig | None = None) -> Path:
    """Resolve ``path`` to an existing file.

    Absolute paths are used as-is; relative paths are tried against each
    candidate root in order.

    Raises:
        PathResolutionError: if no candidate is a file. Matches that exist but
            are not files (directories) are skipped in favor of later roots.
    """
    if not path or not path.strip():
        raise PathResolutionError("No path given")

    requested = Path(path).expanduser()
    if requested.is_absolute():
        candidates = [requested]
    else:
        candidates = [root / requested for root in candidate_roots(cfg)]

    not_files = []
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
        if candidate.exists():
            not_files.append(candidate)

    if not_files:
        raise PathResolutionError(f"Not a file: {not_files[0]}")
    tried = ", ".join(str(c) for c in candidates)
    raise PathResolutionError(f"File not found: {path}", {"tried": tried})


def resolve_output_dir(path: str | None, default: Path, cfg: AnalyzerConfig | None = None) -> Path:
    """Resolve (and create) the directory reports are written to.

    Relative paths are anchored at the first candidate root.
    """
    if not path:
        target = default
    else:
        target = Path(path).expanduser()
        if not target.is_absolute():
            target = candidate_roots(cfg)[0] / target

    if target.exists() and not target.is_dir():
        raise PathResolutionError(f"Output path is not a directory: {target}")
    target.mkdir(parents=True, exist_ok=True)
    return target.resolve()
