"""Utility helpers for working with files."""

from __future__ import annotations

import posixpath
from pathlib import Path

MARKUP_SUFFIXES = frozenset({".html", ".htm"})
IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif"})


def normalized_asset_path(prefix: str, doc_id: str, relative_path: str) -> str:
    """Flatten an asset path so it is unique per document.

    ``images/image1.png`` of document ``123`` becomes ``123-image1.png``, or
    ``assets/123-image1.png`` with the ``assets`` prefix.
    """
    name = f"{doc_id}-{posixpath.basename(relative_path)}"
    if prefix:
        return f"{prefix}/{name}"
    return name


def classify_entry(name: str) -> str:
    """Return ``markup``, ``image`` or ``other`` for an archive entry name."""
    suffix = posixpath.splitext(name)[1].lower()
    if suffix in MARKUP_SUFFIXES:
        return "markup"
    if suffix in IMAGE_SUFFIXES:
        return "image"
    return "other"


def write_file(path: Path, content: bytes) -> None:
    """Write content to path, creating parent directories when needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        handle.write(content)
