"""Document publishing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from docblog.content.frontmatter import compose
from docblog.content.rewriter import DocumentRewriter
from docblog.index.store import MetadataIndexStore, merge_records
from docblog.models import (
    DocumentDescriptor,
    ExportedBundle,
    MetadataRecord,
    RewrittenDocument,
)
from docblog.utils.files import classify_entry, normalized_asset_path, write_file

LOGGER = logging.getLogger(__name__)

DescriptionSupplier = Callable[[bytes], str]


class DocumentSource(Protocol):
    def list_documents(self, folder_id: str) -> List[DocumentDescriptor]: ...

    def export_document(self, doc_id: str) -> ExportedBundle: ...


@dataclass(slots=True)
class PublishStats:
    published: int = 0
    hidden: int = 0
    failed: int = 0
    assets: int = 0
    skipped_entries: int = 0
    written_files: list[Path] = field(default_factory=list)


class Publisher:
    """Coordinates listing, index merge, export, rewrite and output."""

    def __init__(
        self,
        source: DocumentSource,
        store: MetadataIndexStore,
        *,
        posts_output: Path,
        assets_output: Path,
        assets_prefix: str = "",
        frontmatter_format: str = "yaml",
        layout: Optional[str] = None,
        max_workers: int = 4,
        describe: Optional[DescriptionSupplier] = None,
    ) -> None:
        self.source = source
        self.store = store
        self.posts_output = Path(posts_output)
        self.assets_output = Path(assets_output)
        self.assets_prefix = assets_prefix
        self.frontmatter_format = frontmatter_format
        self.layout = layout
        self.max_workers = max_workers
        self.describe = describe

    def collect_records(self, folder_id: str) -> List[MetadataRecord]:
        """Merge the live listing with the index grid."""
        indexed = self.store.read_all()
        if indexed.errors:
            LOGGER.warning("Index grid has %d row errors", len(indexed.errors))
        listed = [descriptor.to_record() for descriptor in self.source.list_documents(folder_id)]
        return merge_records(listed, indexed.records)

    def publish(self, folder_id: str) -> PublishStats:
        """Publish every visible document of the folder and persist the index."""
        records = self.collect_records(folder_id)
        stats = PublishStats()

        for record in records:
            if not record.is_visible:
                LOGGER.info("Skipping hidden document: %s", record.title)
                stats.hidden += 1
                continue
            try:
                LOGGER.info("| %s (%s)", record.title, record.doc_id)
                if self._publish_single(record, stats):
                    stats.published += 1
                else:
                    LOGGER.warning("No HTML document in export of %s", record.title)
                    stats.failed += 1
            except Exception as e:
                LOGGER.error("Failed to publish %s: %s", record.title, e)
                stats.failed += 1

        self.store.write_all(records)
        return stats

    def render(self, record: MetadataRecord, content: bytes) -> RewrittenDocument:
        """Rewrite exported markup and prepend the record's frontmatter."""
        rewriter = DocumentRewriter(
            record.doc_id,
            assets_prefix=self.assets_prefix,
            max_workers=self.max_workers,
        )
        rewritten = rewriter.rewrite(content)
        composed = compose(record, rewritten, fmt=self.frontmatter_format, layout=self.layout)
        return RewrittenDocument(record=record, content=composed)

    def _publish_single(self, record: MetadataRecord, stats: PublishStats) -> bool:
        """Write the post and assets of one document; False when no post was written."""
        bundle = self.source.export_document(record.doc_id)
        posted = False

        for entry in bundle.files:
            kind = classify_entry(entry.name)
            if kind == "markup":
                LOGGER.info("Processing HTML document: %s", entry.name)
                self._fill_description(record, entry.content)
                document = self.render(record, entry.content)
                path = self.posts_output / record.file_name()
                write_file(path, document.content)
                stats.written_files.append(path)
                posted = True
            elif kind == "image":
                LOGGER.info("Processing image asset: %s", entry.name)
                path = self.assets_output / normalized_asset_path(
                    self.assets_prefix, record.doc_id, entry.name
                )
                write_file(path, entry.content)
                stats.assets += 1
                stats.written_files.append(path)
            else:
                LOGGER.warning("Skipping unsupported file: %s", entry.name)
                stats.skipped_entries += 1
        return posted

    def _fill_description(self, record: MetadataRecord, content: bytes) -> None:
        if record.description or self.describe is None:
            return
        try:
            record.description = self.describe(content)
        except Exception as e:
            LOGGER.error("Error generating description for %s: %s", record.title, e)
