"""Metrics extraction: reduce a webpack stats document to a MetricsReport.

``extract_metrics`` is a pure function of its input. It never raises; a
document it cannot walk yields ``ExtractionFailed`` so callers can still
return the rest of their response.
"""

import logging
from pathlib import PurePosixPath
from typing import Any, Optional

from .chunk_size import resolve_chunk_size
from .classifier import classify_module
from .models import (
    ChunkMetrics,
    EntrypointMetrics,
    ExtractionFailed,
    MetricsReport,
    MetricsResult,
    ModuleMetrics,
    PerformanceMetrics,
)
from .stats import Number, StatsAsset, StatsDocument, StatsEntrypoint

logger = logging.getLogger(__name__)

LARGEST_MODULES_LIMIT = 20
LARGEST_CHUNKS_LIMIT = 10
MAX_CHUNK_FRAGMENTATION = 100
MAX_CACHE_EFFICIENCY = 100

# Entrypoints treated as the application's main bundle, in lookup order
MAIN_ENTRYPOINTS = ("main", "index")


def asset_type(name: Optional[str]) -> str:
    """Lowercased extension of an asset name without the dot, or ``unknown``."""
    if not name:
        return "unknown"
    ext = PurePosixPath(name).suffix.lower().lstrip(".")
    return ext or "unknown"


def extract_metrics(stats: Any) -> MetricsResult:
    """Extract size and health metrics from a stats document.

    Args:
        stats: Parsed stats JSON (a dict) or an already validated StatsDocument.

    Returns:
        MetricsReport on success, ExtractionFailed if the document could not
        be walked.
    """
    try:
        document = stats if isinstance(stats, StatsDocument) else StatsDocument.from_raw(stats)
        return _build_report(document)
    except Exception as exc:
        logger.warning("Failed to extract metrics: %s", exc)
        return ExtractionFailed()


def _build_report(document: StatsDocument) -> MetricsReport:
    total_size, size_by_type = _asset_totals(document.assets)
    entrypoints, initial_load = _entrypoint_metrics(document.entrypoints)

    modules = [m for m in document.modules if m is not None and m.size > 0]
    modules.sort(key=lambda m: m.size, reverse=True)
    largest_modules = [
        ModuleMetrics(
            name=m.name if m.name is not None else "unknown",
            size=m.size,
            type=classify_module(m.name),
        )
        for m in modules[:LARGEST_MODULES_LIMIT]
    ]

    chunks = [c for c in document.chunks if c is not None]
    sized_chunks = [(chunk, resolve_chunk_size(chunk, document)) for chunk in chunks]
    sized_chunks.sort(key=lambda item: item[1], reverse=True)
    largest_chunks = [
        ChunkMetrics(
            id=chunk.id if chunk.id is not None else "unknown",
            name=chunk.primary_name or "unnamed chunk",
            size=size,
            modules=len(chunk.modules) if chunk.modules is not None else 0,
        )
        for chunk, size in sized_chunks[:LARGEST_CHUNKS_LIMIT]
    ]

    chunk_count = len(chunks)
    chunk_fragmentation: Number = 0
    if chunk_count > 0:
        chunk_fragmentation = min(
            chunk_count / max(len(entrypoints), 1),
            MAX_CHUNK_FRAGMENTATION,
        )

    cache_efficiency: Number = 0
    if total_size > 0 and chunk_count > 1:
        main_size = _main_bundle_size(entrypoints)
        cache_efficiency = min(
            (total_size - main_size) / total_size * 100,
            MAX_CACHE_EFFICIENCY,
        )

    return MetricsReport(
        total_size=total_size,
        total_size_by_type=size_by_type,
        entrypoints=entrypoints,
        largest_modules=largest_modules,
        largest_chunks=largest_chunks,
        module_count=len(modules),
        chunk_count=chunk_count,
        asset_count=len(document.assets),
        build_time=document.time,
        performance=PerformanceMetrics(
            initial_load=initial_load,
            cache_efficiency=cache_efficiency,
            chunk_fragmentation=chunk_fragmentation,
        ),
    )


def _asset_totals(assets: list[Optional[StatsAsset]]) -> tuple[Number, dict[str, Number]]:
    total: Number = 0
    by_type: dict[str, Number] = {}
    for asset in assets:
        if asset is None:
            continue
        total += asset.size
        ext = asset_type(asset.name)
        by_type[ext] = by_type.get(ext, 0) + asset.size
    return total, by_type


def _entrypoint_metrics(
    entrypoints: dict[str, Optional[StatsEntrypoint]],
) -> tuple[dict[str, EntrypointMetrics], Number]:
    metrics: dict[str, EntrypointMetrics] = {}
    initial_load: Number = 0
    for name, entrypoint in entrypoints.items():
        if entrypoint is None:
            continue
        size = entrypoint.size
        metrics[name] = EntrypointMetrics(size=size, chunks=entrypoint.chunks)
        if name in MAIN_ENTRYPOINTS:
            initial_load = size / 1024
    return metrics, initial_load


def _main_bundle_size(entrypoints: dict[str, EntrypointMetrics]) -> Number:
    for name in MAIN_ENTRYPOINTS:
        if name in entrypoints:
            return entrypoints[name].size
    return 0
