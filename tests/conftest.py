"""Shared fixtures."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Dict, List

import pytest

from docblog.index.columns import GRID_EPOCH

HYPERLINK_RE = re.compile(r'=HYPERLINK\("[^"]*", "([^"]*)"\)')


def render_cell(cell: Dict[str, Any]) -> Dict[str, Any]:
    """Mimic how the Sheets API reports a written cell back on read."""
    rendered = dict(cell)
    value = cell.get("userEnteredValue", {})
    if "stringValue" in value:
        rendered["formattedValue"] = value["stringValue"]
        rendered["effectiveValue"] = {"stringValue": value["stringValue"]}
    elif "numberValue" in value:
        date = GRID_EPOCH + timedelta(days=value["numberValue"])
        rendered["formattedValue"] = date.strftime("%d/%m/%Y")
        rendered["effectiveValue"] = {"numberValue": value["numberValue"]}
    elif "boolValue" in value:
        rendered["formattedValue"] = "TRUE" if value["boolValue"] else "FALSE"
        rendered["effectiveValue"] = {"boolValue": value["boolValue"]}
    elif "formulaValue" in value:
        match = HYPERLINK_RE.match(value["formulaValue"])
        rendered["formattedValue"] = match.group(1) if match else ""
    return rendered


class FakeGridBackend:
    """In-memory stand-in for the hosted spreadsheet."""

    def __init__(self) -> None:
        self.grids: Dict[str, List[Dict[str, Any]]] = {}
        self.folders: Dict[str, List[str]] = {}
        self.widths: Dict[str, List[int]] = {}
        self.writes: List[Dict[str, Any]] = []
        self.find_calls = 0

    def add_grid(self, folder_id: str, rows: List[Dict[str, Any]]) -> str:
        grid_id = f"grid-{len(self.grids) + 1}"
        self.grids[grid_id] = rows
        self.folders.setdefault(folder_id, []).append(grid_id)
        return grid_id

    def find_grids(self, folder_id: str, name: str) -> List[str]:
        self.find_calls += 1
        return list(self.folders.get(folder_id, []))

    def create_grid(self, folder_id, name, *, title, header, widths) -> str:
        grid_id = self.add_grid(folder_id, [{"values": [render_cell(cell) for cell in header]}])
        self.widths[grid_id] = list(widths)
        return grid_id

    def read_grid(self, grid_id: str) -> List[Dict[str, Any]]:
        return self.grids[grid_id]

    def replace_grid_contents(self, grid_id, *, title, header, row_count, column_count, rows) -> None:
        self.writes.append(
            {"grid_id": grid_id, "title": title, "row_count": row_count, "column_count": column_count}
        )
        written = [{"values": header}, *rows]
        rendered = [{"values": [render_cell(cell) for cell in row["values"]]} for row in written]
        self.grids[grid_id] = rendered[:row_count]


@pytest.fixture
def grid_backend() -> FakeGridBackend:
    return FakeGridBackend()
