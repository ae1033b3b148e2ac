"""Column schema of the index grid.

Every column owns its header name, pixel width, and the functions that turn a
record field into a grid cell and back. Read and write paths both go through
``INDEX_COLUMNS`` so reordering or adding a column is a one-place change.

Dates use the grid's native serial representation: fractional days since
1899-12-30, displayed with a ``dd/mm/yyyy`` number format.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from docblog.models import MetadataRecord

Cell = Dict[str, Any]

DOCUMENT_URL = "https://docs.google.com/document/d/{doc_id}"
GRID_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
DISPLAY_DATE_FORMAT = "%d/%m/%Y"
DATE_CELL_FORMAT: Cell = {
    "horizontalAlignment": "LEFT",
    "numberFormat": {"pattern": "dd/mm/yyyy", "type": "DATE"},
}
CHECKBOX_VALIDATION: Cell = {"condition": {"type": "BOOLEAN"}}


def cell_text(cell: Cell) -> str:
    return str(cell.get("formattedValue", "")).strip()


def to_serial(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - GRID_EPOCH) / timedelta(days=1)


def from_serial(serial: float) -> datetime:
    return GRID_EPOCH + timedelta(days=serial)


def encode_id(record: MetadataRecord) -> Cell:
    url = DOCUMENT_URL.format(doc_id=record.doc_id)
    return {
        "userEnteredValue": {"formulaValue": f'=HYPERLINK("{url}", "{record.doc_id}")'},
        "userEnteredFormat": {
            "hyperlinkDisplayType": "LINKED",
            "textFormat": {"link": {"uri": url}},
        },
    }


def decode_id(cell: Cell) -> str:
    doc_id = cell_text(cell)
    if not doc_id:
        raise ValueError("missing document id")
    return doc_id


def encode_text(value: str, *, wrap: bool = False) -> Cell:
    cell: Cell = {"userEnteredValue": {"stringValue": value}}
    if wrap:
        cell["userEnteredFormat"] = {"wrapStrategy": "WRAP"}
    return cell


def decode_text(cell: Cell) -> str:
    return str(cell.get("formattedValue", ""))


def encode_date(value: Optional[datetime]) -> Cell:
    cell: Cell = {"userEnteredFormat": DATE_CELL_FORMAT}
    if value is not None:
        cell["userEnteredValue"] = {"numberValue": to_serial(value)}
    return cell


def decode_date(cell: Cell) -> Optional[datetime]:
    effective = cell.get("effectiveValue") or {}
    if "numberValue" in effective:
        return from_serial(float(effective["numberValue"]))
    text = cell_text(cell)
    if not text:
        return None
    try:
        parsed = datetime.strptime(text, DISPLAY_DATE_FORMAT)
    except ValueError as exc:
        raise ValueError(f"invalid date {text!r}") from exc
    return parsed.replace(tzinfo=timezone.utc)


def encode_flag(value: Optional[bool]) -> Cell:
    cell: Cell = {"dataValidation": CHECKBOX_VALIDATION}
    if value is not None:
        cell["userEnteredValue"] = {"boolValue": value}
    return cell


def decode_flag(cell: Cell) -> Optional[bool]:
    effective = cell.get("effectiveValue") or {}
    if "boolValue" in effective:
        return bool(effective["boolValue"])
    text = cell_text(cell).upper()
    if not text:
        return None
    if text in ("TRUE", "YES", "1"):
        return True
    if text in ("FALSE", "NO", "0"):
        return False
    raise ValueError(f"invalid visibility flag {text!r}")


@dataclass(frozen=True)
class Column:
    name: str
    pixel_width: int
    field: str
    encode: Callable[[MetadataRecord], Cell]
    decode: Callable[[Cell], Any]


INDEX_COLUMNS: tuple[Column, ...] = (
    Column("Id", 350, "doc_id", encode_id, decode_id),
    Column("Name", 300, "title", lambda r: encode_text(r.title), decode_text),
    Column("Date", 100, "created", lambda r: encode_date(r.created), decode_date),
    Column("Last modified", 100, "modified", lambda r: encode_date(r.modified), decode_date),
    Column("Visible", 80, "visible", lambda r: encode_flag(r.visible), decode_flag),
    Column(
        "Description",
        800,
        "description",
        lambda r: encode_text(r.description, wrap=True),
        decode_text,
    ),
)


def header_cells(columns: tuple[Column, ...] = INDEX_COLUMNS) -> List[Cell]:
    return [
        {
            "userEnteredValue": {"stringValue": column.name},
            "userEnteredFormat": {"textFormat": {"bold": True}},
        }
        for column in columns
    ]


def column_widths(columns: tuple[Column, ...] = INDEX_COLUMNS) -> List[int]:
    return [column.pixel_width for column in columns]


def encode_row(record: MetadataRecord, columns: tuple[Column, ...] = INDEX_COLUMNS) -> Cell:
    return {"values": [column.encode(record) for column in columns]}
