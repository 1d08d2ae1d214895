"""
Path helpers shared by the planner, the execution engine and the holding area.

Provides name validation, collision-free naming and symlink-aware existence
checks.
"""

import os
from pathlib import Path


class PathValidationError(ValueError):
    """Raised when a file name or name fragment is unsafe."""
    pass


def path_exists(path: Path) -> bool:
    """
    Check whether anything occupies ``path``.

    Broken symlinks count as present: they still occupy the name.
    """
    return os.path.lexists(path)


def validate_name_fragment(fragment: str) -> str:
    """
    Ensure a rename prefix/suffix or a new file name stays in its directory.

    Args:
        fragment: Text that will become part of a file name

    Returns:
        The fragment unchanged

    Raises:
        PathValidationError: If the fragment contains separators or null bytes
    """
    if '\x00' in fragment:
        raise PathValidationError("Name contains null bytes")

    separators = {'/', '\\', os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in fragment for sep in separators):
        raise PathValidationError(f"Name must not contain path separators: {fragment!r}")

    return fragment


def validate_file_name(name: str) -> str:
    """Validate a complete file name (non-empty, not a relative marker)."""
    validate_name_fragment(name)
    if name in ('', '.', '..'):
        raise PathValidationError(f"Invalid file name: {name!r}")
    return name


def resolve_unique_path(target_path: Path) -> Path:
    """Return ``target_path``, or the first free "name (N).ext" variant of it."""
    if not path_exists(target_path):
        return target_path

    base = target_path.stem
    ext = target_path.suffix
    parent = target_path.parent
    counter = 1

    while True:
        new_path = parent / f"{base} ({counter}){ext}"
        if not path_exists(new_path):
            return new_path
        counter += 1
