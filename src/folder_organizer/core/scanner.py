"""Recursive tree scanner with cooperative cancellation.

Each scan runs its blocking walk on a worker thread of its own and carries
its own cancellation flag, so a late ``cancel()`` can never leak into a scan
started afterwards, and an abandoned walk never delays the next one.
"""

import asyncio
import logging
import os
import stat
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Set

from ..models.file_record import FileRecord, ScanError, ScanResult, extension_of

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Path], None]


class _ScanHandle:
    """Worker, cancellation flag and future of one scan."""

    def __init__(self):
        self.cancel_event = threading.Event()
        self.executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tree-scanner")
        self.future: Optional[Future] = None

    def stop(self) -> None:
        self.cancel_event.set()
        if self.future is not None:
            self.future.cancel()


class TreeScanner:
    """Enumerates a directory tree into file records."""

    def __init__(self, progress_interval: int = 100):
        """
        Initialize the scanner.

        Args:
            progress_interval: Report progress every N discovered entries
        """
        if progress_interval < 1:
            raise ValueError("progress_interval must be at least 1")
        self.progress_interval = progress_interval
        self._lock = threading.Lock()
        self._current: Optional[_ScanHandle] = None
        self._running: Set[_ScanHandle] = set()

    async def scan(self, root: Path,
                   progress_callback: Optional[ProgressCallback] = None) -> ScanResult:
        """
        Scan ``root`` recursively.

        Args:
            root: Directory to enumerate
            progress_callback: Called as ``(count, current_path)`` from the
                worker thread every ``progress_interval`` discovered entries

        Returns:
            The records found, per-entry errors, and whether the scan was
            cancelled
        """
        root = Path(root).expanduser().absolute()
        handle = _ScanHandle()

        with self._lock:
            self._current = handle
            self._running.add(handle)
            handle.future = handle.executor.submit(
                self._walk, root, handle.cancel_event, progress_callback
            )
        handle.future.add_done_callback(lambda _: self._forget(handle))

        try:
            return await asyncio.wrap_future(handle.future)
        except asyncio.CancelledError:
            requested = handle.cancel_event.is_set()
            # Stop the walk along with the awaiting task
            handle.cancel_event.set()
            # cancel() reached the future before the worker picked it up
            if requested and handle.future.cancelled():
                logger.info(f"Scan of {root} cancelled before it started")
                return ScanResult(cancelled=True)
            logger.info(f"Scan of {root} abandoned by its caller")
            raise
        finally:
            handle.executor.shutdown(wait=False)
            with self._lock:
                if self._current is handle:
                    self._current = None

    def cancel(self) -> None:
        """Request cancellation of the current scan. Safe from any thread."""
        with self._lock:
            handle = self._current
        if handle is not None:
            handle.stop()

    @property
    def is_scanning(self) -> bool:
        with self._lock:
            handle = self._current
        return handle is not None and handle.future is not None and not handle.future.done()

    def close(self) -> None:
        """Stop every walk still running and wait for its worker to exit."""
        with self._lock:
            handles = list(self._running)
        for handle in handles:
            handle.stop()
            handle.executor.shutdown(wait=True)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _forget(self, handle: _ScanHandle) -> None:
        with self._lock:
            self._running.discard(handle)

    def _walk(self, root: Path, cancel_event: threading.Event,
              progress_callback: Optional[ProgressCallback]) -> ScanResult:
        files: List[FileRecord] = []
        errors: List[ScanError] = []
        discovered = 0

        try:
            root_entries = self._list_directory(root)
        except OSError as e:
            logger.warning(f"Cannot enumerate root {root}: {e}")
            return ScanResult(errors=[ScanError(root, f"Cannot enumerate directory: {_describe(e)}")])

        stack = [iter(root_entries)]
        while stack:
            entry = next(stack[-1], None)
            if entry is None:
                stack.pop()
                continue

            if cancel_event.is_set():
                logger.info(f"Scan of {root} cancelled after {len(files)} entries")
                return ScanResult(files=files, errors=errors, cancelled=True)

            # Unreadable entries count towards progress too
            discovered += 1
            record = self._record_for(entry, errors)
            if record is not None:
                files.append(record)

            if progress_callback and discovered % self.progress_interval == 0:
                progress_callback(discovered, Path(entry.path))

            # Symlinks are recorded but never followed
            if record is not None and record.is_directory and not record.is_symlink:
                try:
                    stack.append(iter(self._list_directory(record.path)))
                except OSError as e:
                    logger.debug(f"Cannot enumerate {record.path}: {e}")
                    errors.append(ScanError(record.path, f"Cannot enumerate directory: {_describe(e)}"))

        logger.info(f"Scanned {len(files)} entries under {root} ({len(errors)} errors)")
        return ScanResult(files=files, errors=errors, cancelled=cancel_event.is_set())

    @staticmethod
    def _list_directory(path: Path) -> List[os.DirEntry]:
        with os.scandir(path) as it:
            return sorted(it, key=lambda e: e.name)

    @staticmethod
    def _record_for(entry: os.DirEntry, errors: List[ScanError]) -> Optional[FileRecord]:
        path = Path(entry.path)
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            errors.append(ScanError(path, f"Cannot read attributes: {_describe(e)}"))
            return None

        is_symlink = stat.S_ISLNK(st.st_mode)
        is_directory = stat.S_ISDIR(st.st_mode)
        birthtime = getattr(st, "st_birthtime", None)

        return FileRecord(
            path=path,
            name=entry.name,
            extension=extension_of(entry.name),
            size=None if is_directory else st.st_size,
            created_at=datetime.fromtimestamp(birthtime) if birthtime else None,
            modified_at=datetime.fromtimestamp(st.st_mtime),
            is_directory=is_directory,
            is_symlink=is_symlink,
            is_readable=os.access(path, os.R_OK)
        )


def _describe(error: OSError) -> str:
    return error.strerror or str(error)
