"""File records produced by the tree scanner."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable snapshot of one filesystem entry at scan time.

    Identity is the absolute path; a newer scan supersedes a record rather
    than updating it.
    """
    path: Path
    name: str
    extension: str
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    is_directory: bool = False
    is_symlink: bool = False
    is_readable: bool = True

    @classmethod
    def for_path(cls, path: Path, **attributes) -> "FileRecord":
        """Build a record deriving name and extension from ``path``."""
        path = Path(path)
        return cls(
            path=path,
            name=path.name,
            extension=extension_of(path.name),
            **attributes
        )

    def to_dict(self) -> Dict:
        return {
            "path": str(self.path),
            "name": self.name,
            "extension": self.extension,
            "size": self.size,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "modified_at": self.modified_at.isoformat() if self.modified_at else None,
            "is_directory": self.is_directory,
            "is_symlink": self.is_symlink,
            "is_readable": self.is_readable
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "FileRecord":
        return cls(
            path=Path(data["path"]),
            name=data["name"],
            extension=data.get("extension", ""),
            size=data.get("size"),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
            modified_at=datetime.fromisoformat(data["modified_at"]) if data.get("modified_at") else None,
            is_directory=data.get("is_directory", False),
            is_symlink=data.get("is_symlink", False),
            is_readable=data.get("is_readable", True)
        )


def extension_of(name: str) -> str:
    """Extension without the leading dot; dotfiles like ``.bashrc`` have none."""
    return Path(name).suffix[1:]


@dataclass(frozen=True, slots=True)
class ScanError:
    """An entry the scanner could not enumerate or read."""
    path: Path
    message: str


@dataclass(frozen=True)
class ScanResult:
    """Everything a scan produced, including partial results when cancelled."""
    files: List[FileRecord] = field(default_factory=list)
    errors: List[ScanError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def count(self) -> int:
        return len(self.files)
