"""Google Drive and Sheets transport."""

from __future__ import annotations

import io
import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import google.auth
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from docblog.models import DocumentDescriptor, ExportedBundle, ExportedFile

LOGGER = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/spreadsheets",
]
DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
EXPORT_MIME_TYPE = "application/zip"
DOCUMENT_LIST_FIELDS = "nextPageToken, files(id, createdTime, modifiedTime, name)"
DOCUMENT_LIST_QUERY = "'{folder}' in parents and trashed=false and mimeType='{mime}'"
GRID_LIST_QUERY = DOCUMENT_LIST_QUERY + " and name='{name}'"


class DriveServiceError(RuntimeError):
    """Raised when a Drive or Sheets call fails."""


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp as returned by the Drive API."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def unzip_bundle(doc_id: str, archive: bytes) -> ExportedBundle:
    """Extract every file entry of an export archive, in archive order."""
    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            files = [
                ExportedFile(name=info.filename, content=zf.read(info))
                for info in zf.infolist()
                if not info.is_dir()
            ]
    except zipfile.BadZipFile as exc:
        raise DriveServiceError(f"export of {doc_id} is not a valid zip archive") from exc
    return ExportedBundle(doc_id=doc_id, files=files)


class DriveService:
    """Thin wrapper around the Drive v3 and Sheets v4 clients.

    Constructed once per run and passed to every component that needs it.
    """

    def __init__(self, drive: Any, sheets: Any) -> None:
        self._drive = drive
        self._sheets = sheets

    @classmethod
    def from_credentials_file(cls, path: Path) -> DriveService:
        try:
            credentials, _ = google.auth.load_credentials_from_file(str(path), scopes=SCOPES)
        except (GoogleAuthError, OSError) as exc:
            raise DriveServiceError(f"failed to load credentials from {path}: {exc}") from exc
        drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
        sheets = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(drive, sheets)

    def list_documents(self, folder_id: str) -> List[DocumentDescriptor]:
        """List every Google Doc in a folder, following pagination."""
        query = DOCUMENT_LIST_QUERY.format(folder=folder_id, mime=DOCUMENT_MIME_TYPE)
        files: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        while True:
            params: Dict[str, Any] = {"q": query, "fields": DOCUMENT_LIST_FIELDS}
            if page_token:
                params["pageToken"] = page_token
            response = self._execute(self._drive.files().list(**params), "list documents")
            files.extend(response.get("files", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        LOGGER.debug("Listed %d documents in folder %s", len(files), folder_id)
        return [
            DocumentDescriptor(
                doc_id=item["id"],
                name=item.get("name", ""),
                created=parse_timestamp(item.get("createdTime")),
                modified=parse_timestamp(item.get("modifiedTime")),
            )
            for item in files
        ]

    def export_document(self, doc_id: str) -> ExportedBundle:
        """Export a document as zipped HTML and unpack it."""
        request = self._drive.files().export_media(fileId=doc_id, mimeType=EXPORT_MIME_TYPE)
        archive = self._execute(request, f"export document {doc_id}")
        return unzip_bundle(doc_id, archive)

    def find_grids(self, folder_id: str, name: str) -> List[str]:
        query = GRID_LIST_QUERY.format(folder=folder_id, mime=SPREADSHEET_MIME_TYPE, name=name)
        response = self._execute(
            self._drive.files().list(q=query, fields="files(id)"), "find index grid"
        )
        return [item["id"] for item in response.get("files", [])]

    def create_grid(
        self,
        folder_id: str,
        name: str,
        *,
        title: str,
        header: List[Dict[str, Any]],
        widths: List[int],
    ) -> str:
        """Create a spreadsheet holding only the header row and move it into the folder."""
        body = {
            "properties": {"title": name},
            "sheets": [
                {
                    "properties": {
                        "title": title,
                        "gridProperties": {"columnCount": len(header), "rowCount": 1},
                    },
                    "data": [
                        {
                            "columnMetadata": [{"pixelSize": width} for width in widths],
                            "rowData": [{"values": header}],
                        }
                    ],
                }
            ],
        }
        created = self._execute(self._sheets.spreadsheets().create(body=body), "create index grid")
        grid_id = created["spreadsheetId"]
        self._execute(
            self._drive.files().update(fileId=grid_id, addParents=folder_id, fields="id"),
            "attach index grid to folder",
        )
        return grid_id

    def read_grid(self, grid_id: str) -> List[Dict[str, Any]]:
        """Return the first sheet's rows, header included."""
        spreadsheet = self._execute(
            self._sheets.spreadsheets().get(spreadsheetId=grid_id, includeGridData=True),
            "read index grid",
        )
        sheets = spreadsheet.get("sheets") or [{}]
        data = sheets[0].get("data") or [{}]
        return data[0].get("rowData", [])

    def replace_grid_contents(
        self,
        grid_id: str,
        *,
        title: str,
        header: List[Dict[str, Any]],
        row_count: int,
        column_count: int,
        rows: List[Dict[str, Any]],
    ) -> None:
        """Resize the first sheet and overwrite the header and every data row."""
        spreadsheet = self._execute(
            self._sheets.spreadsheets().get(spreadsheetId=grid_id, fields="sheets.properties"),
            "read index grid properties",
        )
        sheet_id = spreadsheet["sheets"][0]["properties"]["sheetId"]

        requests: List[Dict[str, Any]] = [
            {
                "updateSheetProperties": {
                    "fields": "*",
                    "properties": {
                        "sheetId": sheet_id,
                        "title": title,
                        "gridProperties": {
                            "columnCount": column_count,
                            "rowCount": row_count,
                        },
                    },
                }
            },
            {
                "updateCells": {
                    "fields": "*",
                    "rows": [{"values": header}, *rows],
                    "start": {"sheetId": sheet_id, "rowIndex": 0, "columnIndex": 0},
                }
            },
        ]
        self._execute(
            self._sheets.spreadsheets().batchUpdate(
                spreadsheetId=grid_id, body={"requests": requests}
            ),
            "update index grid",
        )

    @staticmethod
    def _execute(request: Any, action: str) -> Any:
        try:
            return request.execute()
        except HttpError as exc:
            raise DriveServiceError(f"failed to {action}: {exc}") from exc
