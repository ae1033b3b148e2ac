"""Core docblog data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

POST_DATE_FORMAT = "%Y-%m-%d"


@dataclass(slots=True, frozen=True)
class DocumentDescriptor:
    """A document as reported by the folder listing."""

    doc_id: str
    name: str
    created: Optional[datetime]
    modified: Optional[datetime]

    def to_record(self) -> MetadataRecord:
        return MetadataRecord(
            doc_id=self.doc_id,
            title=self.name,
            created=self.created,
            modified=self.modified,
            visible=True,
        )


@dataclass(slots=True)
class MetadataRecord:
    """Per-document metadata persisted in the index grid.

    ``None`` dates and visibility mean "unset": the value was never provided
    or the grid cell was left blank by the operator.
    """

    doc_id: str
    title: str = ""
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    description: str = ""
    visible: Optional[bool] = None

    @property
    def is_visible(self) -> bool:
        return self.visible is not False

    def file_name(self) -> str:
        """Post file name following the Jekyll ``YYYY-MM-DD-title.html`` convention."""
        parts = []
        if self.created is not None:
            parts.append(self.created.strftime(POST_DATE_FORMAT))
        parts.append(self.title.replace("/", "-").replace(" ", "-"))
        return "-".join(parts) + ".html"


@dataclass(slots=True)
class ExportedFile:
    """Single entry extracted from an export archive."""

    name: str
    content: bytes


@dataclass(slots=True)
class ExportedBundle:
    """Markup and assets exported for one document."""

    doc_id: str
    files: List[ExportedFile] = field(default_factory=list)


@dataclass(slots=True)
class RewrittenDocument:
    """Metadata paired with the rewritten, frontmatter-prefixed markup."""

    record: MetadataRecord
    content: bytes
