"""Recoverable holding area used instead of permanent deletion."""

import logging
import shutil
from pathlib import Path

from ..exceptions import FileOperationError
from ..utils.paths import path_exists, resolve_unique_path

logger = logging.getLogger(__name__)


class TrashBin:
    """A directory that deleted entries are moved into.

    Nothing is ever removed from the holding area by this class; entries
    leave it only when the undo path moves them back out.
    """

    def __init__(self, trash_dir: Path):
        self.trash_dir = Path(trash_dir)

    def relocate(self, path: Path) -> Path:
        """
        Move ``path`` into the holding area.

        Two entries with the same name get distinct holding paths
        ("report.pdf", "report (1).pdf", ...).

        Args:
            path: File or directory to relocate

        Returns:
            Where the entry now lives inside the holding area

        Raises:
            FileOperationError: If the source is gone or the move fails
        """
        path = Path(path)
        if not path_exists(path):
            raise FileOperationError(f"Cannot move to trash, not found: {path}")

        try:
            self.trash_dir.mkdir(parents=True, exist_ok=True)
            target = resolve_unique_path(self.trash_dir / path.name)
            shutil.move(str(path), str(target))
        except OSError as e:
            raise FileOperationError(f"Failed to move {path} to trash: {e}") from e

        logger.debug(f"Moved {path} to trash as {target}")
        return target

    def contains(self, path: Path) -> bool:
        """Whether ``path`` lies inside the holding area."""
        try:
            Path(path).resolve().relative_to(self.trash_dir.resolve())
            return True
        except ValueError:
            return False
