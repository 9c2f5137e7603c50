"""Response shapes returned by the files app.

None of them carries object keys or other storage details.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, final

from filegate.apps.files.models import File


@final
@dataclass(frozen=True, slots=True)
class FileDTO:
    """Public view of one file record."""

    id: int
    filename: str
    size_bytes: int
    content_type: str
    created_at: datetime

    @classmethod
    def from_model(cls, file_instance: File) -> 'FileDTO':
        """Build the DTO from a File row."""
        return cls(
            id=file_instance.pk,
            filename=file_instance.filename,
            size_bytes=file_instance.size_bytes,
            content_type=file_instance.content_type,
            created_at=file_instance.created_at,
        )

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready mapping."""
        payload = asdict(self)
        payload['created_at'] = self.created_at.isoformat()
        return payload


@final
@dataclass(frozen=True, slots=True)
class FilePage:
    """One page of a file listing plus the total for pagination."""

    items: list[FileDTO]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        """Number of pages for the current page size."""
        return -(-self.total // self.size)

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready mapping."""
        return {
            'items': [item.as_dict() for item in self.items],
            'total': self.total,
            'page': self.page,
            'size': self.size,
            'total_pages': self.total_pages,
        }


@final
@dataclass(frozen=True, slots=True)
class StorageUsageDTO:
    """Used and maximum storage for display."""

    used_bytes: int
    max_bytes: int
    percentage: float

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready mapping."""
        return asdict(self)


@final
@dataclass(frozen=True, slots=True)
class FileStatsDTO:
    """File count and total size of one owner."""

    file_count: int
    total_size_bytes: int

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready mapping."""
        return asdict(self)


@final
@dataclass(frozen=True, slots=True)
class DownloadLinkDTO:
    """Presigned download URL and the moment it stops working."""

    download_url: str
    expires_at: datetime

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready mapping."""
        return {
            'download_url': self.download_url,
            'expires_at': self.expires_at.isoformat(),
        }


@final
@dataclass(slots=True)
class BulkDeleteResult:
    """Tally of an account teardown.

    Object counts are filled in once the deleting transaction commits;
    until then they stay at zero.
    """

    deleted_records: int
    deleted_objects: int = 0
    failed_objects: int = 0
