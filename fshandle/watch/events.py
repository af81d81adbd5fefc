from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


class UpdateType(Enum):
    CREATE = "create"
    DELETE = "delete"
    MODIFY = "modify"


@dataclass(frozen=True)
class ListingEntry:
    """Snapshot of one child of a directory"""
    name: str
    is_directory: bool
    size: Optional[int] = None
    mtime: Optional[float] = None
    is_symlink: bool = False


@dataclass(frozen=True)
class UpdateEvent:
    """One change to a child of the watched directory"""
    name: str
    update_type: UpdateType
    directory: str
    is_directory: Optional[bool] = None
    size: Optional[int] = None
    mtime: Optional[float] = None
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    def to_entry(self) -> Optional[ListingEntry]:
        """Listing shape of the changed entry; None for deletions"""
        if self.update_type is UpdateType.DELETE:
            return None
        return ListingEntry(
            name=self.name,
            is_directory=bool(self.is_directory),
            size=self.size,
            mtime=self.mtime,
        )

    def __str__(self):
        return f"{self.update_type.value}: {self.name} in {self.directory}"
