"""Exceptions raised by the analyzer's orchestration layer.

Tool functions catch these at their boundary and turn them into
``{"success": False, ...}`` responses.
"""

from typing import Any, Dict, Optional


class WebpackAnalyzerError(Exception):
    """Base exception for all webpack analyzer errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class StatsDocumentError(WebpackAnalyzerError):
    """The stats document has a shape the extractor cannot walk."""


class PathResolutionError(WebpackAnalyzerError):
    """A requested file could not be found under any candidate root."""


class StatsFileError(WebpackAnalyzerError):
    """A stats file exists but could not be read or parsed."""


class BuildError(WebpackAnalyzerError):
    """The webpack build failed, timed out or could not be started."""


class ReportError(WebpackAnalyzerError):
    """webpack-bundle-analyzer failed to produce a report or start a server."""
