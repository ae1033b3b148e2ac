"""Rewrite exported Google Docs HTML into portable, theme-neutral markup.

The exporter produces a full HTML document with a document-level stylesheet,
inline font choices, redirect-wrapped links and relative image paths. The
rewriter fixes all of these in one traversal over the parsed tree.

Traversal runs level by level: every node of a level is handed to a bounded
thread pool, each task only touches its own node, and nodes that must be
removed are detached by the coordinator once the level has joined.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup, Tag

from docblog.utils.files import normalized_asset_path

LOGGER = logging.getLogger(__name__)

HIDE_STYLE = "visibility:hidden;display:none"
REDIRECT_PREFIX = "https://www.google.com/url"
HEADINGS = ("h1", "h2", "h3", "h4", "h5", "h6")
HIDDEN_CLASSES = frozenset({"title", "subtitle"})
DEFAULT_MAX_WORKERS = 4


class RewriteError(ValueError):
    """Raised when exported markup cannot be parsed."""


def strip_font_declarations(style: str) -> str:
    """Drop ``color`` and ``font-*`` declarations from an inline style value."""
    kept: List[str] = []
    for declaration in style.split(";"):
        declaration = declaration.strip()
        if not declaration:
            continue
        prop = declaration.split(":", 1)[0].strip().lower()
        if prop == "color" or prop.startswith("font-"):
            continue
        kept.append(declaration)
    return "".join(f"{declaration};" for declaration in kept)


def unwrap_redirect(href: str) -> str:
    """Return the target of a redirect-wrapped link, or ``href`` unchanged."""
    if not href.startswith(REDIRECT_PREFIX):
        return href
    targets = parse_qs(urlsplit(href).query).get("q")
    if not targets:
        return href
    return targets[0]


def shift_heading(name: str) -> str:
    """Move a heading one level down; ``h6`` is already the deepest level."""
    level = int(name[1])
    return f"h{min(level + 1, 6)}"


class DocumentRewriter:
    """Applies the content fixes for a single document."""

    def __init__(
        self,
        doc_id: str,
        *,
        assets_prefix: str = "",
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.doc_id = doc_id
        self.assets_prefix = assets_prefix
        self.max_workers = max_workers

    def rewrite(self, content: bytes) -> bytes:
        """Parse, fix and re-serialize an exported HTML document."""
        try:
            soup = BeautifulSoup(content, "lxml")
        except Exception as exc:
            raise RewriteError(f"failed to parse document {self.doc_id}: {exc}") from exc

        if soup.body is None:
            raise RewriteError(f"document {self.doc_id} has no <body> element")

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            frontier: List[Tag] = [soup]
            while frontier:
                detach = list(pool.map(self._rewrite_node, frontier))
                next_frontier: List[Tag] = []
                for node, remove in zip(frontier, detach):
                    if remove:
                        node.decompose()
                        continue
                    next_frontier.extend(_child_tags(node))
                frontier = next_frontier

        LOGGER.debug("Rewrote document %s", self.doc_id)
        return soup.encode(formatter="minimal")

    def _rewrite_node(self, node: Tag) -> bool:
        """Rewrite a single element in place; return True when it must be removed."""
        name = node.name
        if name == "style":
            return True

        if name == "body":
            if node.has_attr("style"):
                node["style"] = ""
        elif node.has_attr("style"):
            node["style"] = strip_font_declarations(node["style"])

        if name == "a" and node.has_attr("href"):
            node["href"] = unwrap_redirect(node["href"])
        elif name in HEADINGS:
            node.name = shift_heading(name)
        elif name == "img" and node.has_attr("src"):
            node["src"] = "/" + normalized_asset_path(self.assets_prefix, self.doc_id, node["src"])
        elif name == "p" and HIDDEN_CLASSES.intersection(node.get("class") or ()):
            node["style"] = node.get("style", "").rstrip(";") + ";" + HIDE_STYLE

        return False


def _child_tags(node: Tag) -> Iterator[Tag]:
    return (child for child in node.children if isinstance(child, Tag))


def rewrite_document(
    doc_id: str,
    content: bytes,
    *,
    assets_prefix: str = "",
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> bytes:
    """Convenience wrapper around :class:`DocumentRewriter`."""
    rewriter = DocumentRewriter(doc_id, assets_prefix=assets_prefix, max_workers=max_workers)
    return rewriter.rewrite(content)
