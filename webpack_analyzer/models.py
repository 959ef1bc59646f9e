"""Data models for the Webpack Analyzer server."""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .stats import Number

EXTRACTION_FAILED_MESSAGE = "Failed to extract metrics"


class EntrypointMetrics(BaseModel):
    size: Number = 0
    chunks: Any = Field(default_factory=list)

    model_config = {"frozen": True}


class ModuleMetrics(BaseModel):
    name: str
    size: Number
    type: str

    model_config = {"frozen": True}


class ChunkMetrics(BaseModel):
    id: str
    name: str
    size: Number
    modules: int = 0  # number of modules listed in the chunk

    model_config = {"frozen": True}


class PerformanceMetrics(BaseModel):
    initial_load: Number = Field(default=0, alias="initialLoad")  # KiB
    cache_efficiency: Number = Field(default=0, alias="cacheEfficiency")  # percent
    chunk_fragmentation: Number = Field(default=0, alias="chunkFragmentation")  # ratio

    model_config = {"populate_by_name": True, "frozen": True}


class MetricsReport(BaseModel):
    total_size: Number = Field(default=0, alias="totalSize")
    total_size_by_type: dict[str, Number] = Field(default_factory=dict, alias="totalSizeByType")
    entrypoints: dict[str, EntrypointMetrics] = Field(default_factory=dict)
    largest_modules: list[ModuleMetrics] = Field(default_factory=list, alias="largestModules")
    largest_chunks: list[ChunkMetrics] = Field(default_factory=list, alias="largestChunks")
    module_count: int = Field(default=0, alias="moduleCount")
    chunk_count: int = Field(default=0, alias="chunkCount")
    asset_count: int = Field(default=0, alias="assetCount")
    build_time: Number = Field(default=0, alias="buildTime")
    performance: PerformanceMetrics = Field(default_factory=PerformanceMetrics)

    model_config = {"populate_by_name": True, "frozen": True}

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class ExtractionFailed(BaseModel):
    """Returned instead of a report when the stats document cannot be walked."""

    error: str = EXTRACTION_FAILED_MESSAGE

    model_config = {"frozen": True}

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


MetricsResult = Union[MetricsReport, ExtractionFailed]


class BuildResult(BaseModel):
    """Outcome of one webpack build with the analyzer plugin injected."""

    run_dir: str
    stats_path: str
    report_path: Optional[str] = None
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0


class ServerInfo(BaseModel):
    """A running webpack-bundle-analyzer server."""

    id: str
    url: str
    pid: int
    stats_path: str
    running: bool = True
