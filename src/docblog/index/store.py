"""Spreadsheet-backed metadata index.

The index is a grid document named ``index`` living next to the posts in the
Drive folder. Its first row holds the column headers and every following row
holds one :class:`MetadataRecord`. Operators edit descriptions, dates and
visibility by hand; each run reads the grid, merges it with the live document
listing and writes the merged set back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

from docblog.index.columns import (
    INDEX_COLUMNS,
    Cell,
    Column,
    cell_text,
    column_widths,
    encode_row,
    header_cells,
)
from docblog.models import MetadataRecord

LOGGER = logging.getLogger(__name__)

INDEX_GRID_NAME = "index"
INDEX_SHEET_TITLE = "Docblog configuration"


class AmbiguousIndexError(RuntimeError):
    """Raised when the folder holds more than one index grid."""


class GridBackend(Protocol):
    """Transport used by the store to reach the hosted grid."""

    def find_grids(self, folder_id: str, name: str) -> List[str]: ...

    def create_grid(
        self,
        folder_id: str,
        name: str,
        *,
        title: str,
        header: List[Cell],
        widths: List[int],
    ) -> str: ...

    def read_grid(self, grid_id: str) -> List[Cell]: ...

    def replace_grid_contents(
        self,
        grid_id: str,
        *,
        title: str,
        header: List[Cell],
        row_count: int,
        column_count: int,
        rows: List[Cell],
    ) -> None: ...


@dataclass(slots=True)
class RowError:
    """A recoverable problem found while parsing one index row."""

    doc_id: str
    row_number: int
    message: str


@dataclass(slots=True)
class IndexContents:
    records: Dict[str, MetadataRecord] = field(default_factory=dict)
    errors: List[RowError] = field(default_factory=list)


def column_positions(
    header: Sequence[Cell],
    columns: Sequence[Column] = INDEX_COLUMNS,
) -> Dict[str, int]:
    """Map each column field to its cell position, using the header names.

    Columns missing from the header are left out. A header without an ``Id``
    column is not trusted and the schema order is used instead.
    """
    names = [cell_text(cell).lower() for cell in header]
    positions = {
        column.field: names.index(column.name.lower())
        for column in columns
        if column.name.lower() in names
    }
    if columns[0].field not in positions:
        return {column.field: position for position, column in enumerate(columns)}
    return positions


def parse_row(
    values: Sequence[Cell],
    *,
    row_number: int,
    columns: Sequence[Column] = INDEX_COLUMNS,
    positions: Optional[Mapping[str, int]] = None,
) -> tuple[Optional[MetadataRecord], List[RowError]]:
    """Decode one grid row.

    ``positions`` maps column fields to cell positions and defaults to the
    schema order. Columns absent from ``positions`` stay unset. Returns
    whatever fields could be decoded; a row without an identifier yields no
    record.
    """
    if positions is None:
        positions = {column.field: position for position, column in enumerate(columns)}

    id_column = columns[0]
    id_position = positions[id_column.field]
    try:
        cell = values[id_position] if id_position < len(values) else {}
        doc_id = id_column.decode(cell)
    except ValueError as exc:
        return None, [RowError("", row_number, str(exc))]

    record = MetadataRecord(doc_id=doc_id)
    errors: List[RowError] = []
    for column in columns[1:]:
        position = positions.get(column.field)
        if position is None:
            continue
        if position >= len(values):
            errors.append(RowError(doc_id, row_number, f"missing {column.name.lower()} value"))
            continue
        try:
            setattr(record, column.field, column.decode(values[position]))
        except ValueError as exc:
            errors.append(RowError(doc_id, row_number, f"error parsing {column.name.lower()}: {exc}"))
    return record, errors


def merge_record(listed: MetadataRecord, indexed: Optional[MetadataRecord]) -> MetadataRecord:
    """Merge a listing record with its index row.

    The listing owns the title and the latest modification time; explicit
    index values win for the publication date, description and visibility.
    Blank index cells never erase listing values.
    """
    if indexed is None:
        return replace(listed)
    return replace(
        listed,
        created=indexed.created if indexed.created is not None else listed.created,
        modified=listed.modified if listed.modified is not None else indexed.modified,
        description=indexed.description or listed.description,
        visible=indexed.visible if indexed.visible is not None else listed.visible,
    )


def merge_records(
    listed: Iterable[MetadataRecord],
    indexed: Mapping[str, MetadataRecord],
) -> List[MetadataRecord]:
    """Merge every listed record; index rows with no listed document are dropped."""
    merged = []
    for record in listed:
        match = indexed.get(record.doc_id)
        if match is not None:
            LOGGER.debug("Found index metadata for %s", record.title)
        merged.append(merge_record(record, match))
    return merged


class MetadataIndexStore:
    """Key-value view of the index grid, keyed by document identifier."""

    def __init__(
        self,
        backend: GridBackend,
        folder_id: str,
        *,
        columns: Sequence[Column] = INDEX_COLUMNS,
    ) -> None:
        self.backend = backend
        self.folder_id = folder_id
        self.columns = tuple(columns)
        self._grid_id: Optional[str] = None

    def find(self) -> Optional[str]:
        """Return the index grid id, or None when the folder has no grid yet."""
        if self._grid_id is not None:
            return self._grid_id

        matches = self.backend.find_grids(self.folder_id, INDEX_GRID_NAME)
        if len(matches) > 1:
            raise AmbiguousIndexError(
                f"multiple '{INDEX_GRID_NAME}' grids found in folder {self.folder_id}"
            )
        if matches:
            self._grid_id = matches[0]
        return self._grid_id

    def locate(self) -> str:
        """Return the index grid id, creating the grid when the folder has none."""
        grid_id = self.find()
        if grid_id is not None:
            return grid_id

        LOGGER.info("Creating index grid in folder %s", self.folder_id)
        self._grid_id = self.backend.create_grid(
            self.folder_id,
            INDEX_GRID_NAME,
            title=INDEX_SHEET_TITLE,
            header=header_cells(self.columns),
            widths=column_widths(self.columns),
        )
        return self._grid_id

    def read_all(self, *, create: bool = True) -> IndexContents:
        """Read every data row; row errors are collected, not raised.

        With ``create=False`` a folder without a grid reads as empty and no
        grid is created.
        """
        contents = IndexContents()
        grid_id = self.locate() if create else self.find()
        if grid_id is None:
            return contents
        rows = self.backend.read_grid(grid_id)
        if not rows:
            return contents

        positions = self._header_positions(rows[0].get("values", []))
        for row_number, row in enumerate(rows[1:], start=2):
            values = row.get("values", [])
            if not any(cell_text(cell) for cell in values):
                continue
            record, errors = parse_row(
                values, row_number=row_number, columns=self.columns, positions=positions
            )
            for error in errors:
                LOGGER.warning(
                    "Error parsing index row %d (%s): %s",
                    error.row_number,
                    error.doc_id,
                    error.message,
                )
            contents.errors.extend(errors)
            if record is None:
                continue
            if record.doc_id in contents.records:
                contents.errors.append(
                    RowError(record.doc_id, row_number, "duplicate row, keeping the last one")
                )
                LOGGER.warning("Duplicate index row %d (%s)", row_number, record.doc_id)
            contents.records[record.doc_id] = record
        return contents

    def write_all(self, records: Sequence[MetadataRecord]) -> None:
        """Replace the grid contents with the header and exactly the given records."""
        grid_id = self.locate()
        self.backend.replace_grid_contents(
            grid_id,
            title=INDEX_SHEET_TITLE,
            header=header_cells(self.columns),
            row_count=1 + len(records),
            column_count=len(self.columns),
            rows=[encode_row(record, self.columns) for record in records],
        )
        LOGGER.info("Wrote %d records to index grid %s", len(records), grid_id)

    def _header_positions(self, values: Sequence[Cell]) -> Dict[str, int]:
        found = [cell_text(cell) for cell in values]
        expected = [column.name for column in self.columns]
        if found[: len(expected)] != expected:
            LOGGER.warning("Unexpected index header %s, expected %s", found, expected)
        return column_positions(values, self.columns)
