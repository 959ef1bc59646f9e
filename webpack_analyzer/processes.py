"""Registry of long-running external processes (webpack-bundle-analyzer servers)."""

from __future__ import annotations

import logging
import subprocess
import threading
import uuid
from pathlib import Path

from .models import ServerInfo

logger = logging.getLogger(__name__)


class ProcessRegistry:
    """Owns the Popen handles spawned by the server and stops them on shutdown."""

    def __init__(self) -> None:
        self._processes: dict[str, subprocess.Popen] = {}
        self._servers: dict[str, ServerInfo] = {}
        self._lock = threading.Lock()

    def spawn(
        self,
        cmd: list[str],
        log_path: Path,
        cwd: Path | None = None,
    ) -> tuple[str, subprocess.Popen]:
        """Start ``cmd`` in the background and register it. Returns (handle_id, process).

        stdout and stderr go to ``log_path`` so an unread pipe never blocks the child.
        """
        with open(log_path, "ab") as log:
            proc = subprocess.Popen(
                cmd,
                cwd=str(cwd) if cwd else None,
                stdin=subprocess.DEVNULL,
                stdout=log,
                stderr=subprocess.STDOUT,
            )
        handle_id = str(uuid.uuid4())[:8]
        with self._lock:
            self._processes[handle_id] = proc
        logger.info("Started %s (handle %s, pid %d)", cmd[0], handle_id, proc.pid)
        return handle_id, proc

    def get(self, handle_id: str) -> subprocess.Popen | None:
        with self._lock:
            return self._processes.get(handle_id)

    def is_running(self, handle_id: str) -> bool:
        proc = self.get(handle_id)
        return proc is not None and proc.poll() is None  # None means still running

    def handles(self) -> list[str]:
        with self._lock:
            return list(self._processes.keys())

    def register_server(self, info: ServerInfo) -> None:
        """Attach server metadata to a spawned handle so it shows up in ``servers()``."""
        with self._lock:
            if info.id not in self._processes:
                raise KeyError(info.id)
            self._servers[info.id] = info

    def servers(self) -> list[ServerInfo]:
        """Registered servers, with ``running`` reflecting the process state now."""
        with self._lock:
            entries = list(self._servers.items())
        return [
            info.model_copy(update={"running": self.is_running(handle_id)})
            for handle_id, info in entries
        ]

    def stop(self, handle_id: str) -> bool:
        """Terminate one process. Returns False if the handle is unknown."""
        with self._lock:
            proc = self._processes.pop(handle_id, None)
            self._servers.pop(handle_id, None)
        if proc is None:
            return False

        try:
            proc.terminate()
            try:
                proc.wait(timeout=5)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait(timeout=2)
            logger.info("Stopped handle %s (pid %d)", handle_id, proc.pid)
        except OSError as exc:
            logger.warning("Error stopping handle %s: %s", handle_id, exc)
        return True

    def stop_all(self) -> None:
        """Stop every registered process (called on server shutdown)."""
        for handle_id in self.handles():
            self.stop(handle_id)


# Module-level singleton
_registry: ProcessRegistry | None = None


def get_process_registry() -> ProcessRegistry:
    """Get (or create) the singleton ProcessRegistry."""
    global _registry
    if _registry is None:
        _registry = ProcessRegistry()
    return _registry
