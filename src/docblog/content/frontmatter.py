"""Frontmatter serialization for static-site generators."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

import yaml

from docblog.models import MetadataRecord

FRONTMATTER_FORMATS = ("yaml", "json")
YAML_DELIMITER = "---\n"


class FrontmatterError(ValueError):
    """Raised when a metadata record cannot be serialized."""


def frontmatter_fields(record: MetadataRecord, *, layout: Optional[str] = None) -> Dict[str, Any]:
    """Map a record onto its frontmatter field names, omitting empty values."""
    fields: Dict[str, Any] = {}
    if layout:
        fields["layout"] = layout
    fields["google_doc_id"] = record.doc_id
    if record.title:
        fields["title"] = record.title
    if record.created is not None:
        fields["date"] = record.created
    if record.modified is not None:
        fields["lastmod"] = record.modified
    if record.description:
        fields["description"] = record.description
    if record.visible is not None:
        fields["published"] = record.visible
    return fields


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_frontmatter(
    record: MetadataRecord,
    *,
    fmt: str = "yaml",
    layout: Optional[str] = None,
) -> str:
    """Serialize a record as a delimited frontmatter block.

    ``yaml`` produces a Jekyll style ``---`` block, ``json`` produces the JSON
    object Hugo accepts at the top of a content file.
    """
    fields = frontmatter_fields(record, layout=layout)
    try:
        if fmt == "yaml":
            body = yaml.safe_dump(
                fields,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
            return f"{YAML_DELIMITER}{body}{YAML_DELIMITER}"
        if fmt == "json":
            return json.dumps(fields, indent=2, ensure_ascii=False, default=_json_default) + "\n"
    except (yaml.YAMLError, TypeError, ValueError) as exc:
        raise FrontmatterError(f"failed to serialize frontmatter for {record.doc_id}: {exc}") from exc
    raise FrontmatterError(f"unsupported frontmatter format: {fmt}")


def compose(
    record: MetadataRecord,
    content: bytes,
    *,
    fmt: str = "yaml",
    layout: Optional[str] = None,
) -> bytes:
    """Prepend the record's frontmatter block to rewritten markup."""
    header = render_frontmatter(record, fmt=fmt, layout=layout)
    return header.encode("utf-8") + content
