"""Module classification by origin and file type."""

from pathlib import PurePosixPath
from typing import Optional

NODE_MODULES_MARKER = "node_modules"

MODULE_TYPES = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".css": "styles",
    ".scss": "styles",
    ".less": "styles",
    ".svg": "image",
    ".png": "image",
    ".jpg": "image",
    ".jpeg": "image",
    ".gif": "image",
    ".json": "json",
}


def package_name(path: str) -> Optional[str]:
    """Return the package segment following the first ``node_modules`` marker."""
    _, marker, rest = path.replace("\\", "/").partition(NODE_MODULES_MARKER)
    if not marker:
        return None
    segment = rest.lstrip("/").split("/", 1)[0].strip()
    return segment or None


def classify_module(path: Optional[str]) -> str:
    """Label a module path as ``npm:<package>``, a file type, or ``unknown``.

    >>> classify_module("src/app/node_modules/lodash/index.js")
    'npm:lodash'
    >>> classify_module("src/components/Button.tsx")
    'typescript'
    """
    if not path:
        return "unknown"

    if NODE_MODULES_MARKER in path:
        name = package_name(path)
        return f"npm:{name}" if name else "npm"

    ext = PurePosixPath(path.replace("\\", "/")).suffix.lower()
    return MODULE_TYPES.get(ext, "other")
