"""Effective byte size of a chunk.

Strategies, first match wins:

1. the chunk's own ``size``
2. the sum of its listed modules
3. the sum of the top-level assets associated with it
4. zero

Step 3 is a heuristic for stats documents generated without chunk detail
(``stats: 'minimal'`` and similar); it lives in ``associated_assets`` alone.
"""

from .stats import Number, StatsAsset, StatsChunk, StatsDocument


def associated_assets(chunk: StatsChunk, assets: list) -> list[StatsAsset]:
    """Assets that list the chunk's id, or whose name contains its primary name."""
    primary = chunk.primary_name
    matches = []
    for asset in assets:
        if asset is None:
            continue
        if chunk.id is not None and chunk.id in asset.chunks:
            matches.append(asset)
        elif primary and asset.name and primary in asset.name:
            matches.append(asset)
    return matches


def resolve_chunk_size(chunk: StatsChunk, document: StatsDocument) -> Number:
    if chunk.size is not None:
        return chunk.size

    if chunk.modules is not None:
        return sum(module.size for module in chunk.modules if module is not None)

    return sum(asset.size for asset in associated_assets(chunk, document.assets))
