"""Embedded client state (``window.__APOLLO_STATE__``) as a flat arena.

The blob is a normalised object graph: every entity lives at the top level
under a reference key such as ``Post:1a2b3c`` or ``Paragraph:9f8e``, and
other nodes point at it with ``{"__ref": "Post:1a2b3c"}``. Nothing here
follows object identity; references are resolved by key lookup only.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional

from .config import BASE_URL, IMAGE_CDN
from .errors import StateParseError
from .models import Code, ContentBlock, Heading, Image, Link, ListBlock, Paragraph, Quote, UnknownBlock
from .processing import clean_text

STATE_MARKER = "window.__APOLLO_STATE__"
PARAGRAPH_PREFIX = "Paragraph:"

_POST_QUERY_PREFIXES = ("post(", "postResult(")
_HEADINGS = {"H1": 1, "H2": 2, "H3": 3, "H4": 4}


class StateGraph:
    """Reference-key -> node mapping with lookup helpers."""

    def __init__(self, nodes: Dict[str, Any]) -> None:
        if not isinstance(nodes, dict):
            raise StateParseError("state root is not an object")
        self._nodes = nodes

    @classmethod
    def from_html(cls, html: str) -> Optional["StateGraph"]:
        """Locate and decode the state blob.

        Returns None when the page carries no blob at all; raises
        StateParseError when a blob is present but cannot be decoded.
        """
        if not html:
            return None
        marker = html.find(STATE_MARKER)
        if marker < 0:
            return None
        start = html.find("{", marker + len(STATE_MARKER))
        if start < 0:
            raise StateParseError("state marker without an object literal")
        try:
            nodes, _ = json.JSONDecoder().raw_decode(html, start)
        except ValueError as exc:
            raise StateParseError(f"state blob is not valid JSON: {exc}") from exc
        return cls(nodes)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        node = self._nodes.get(key)
        return node if isinstance(node, dict) else None

    def resolve(self, value: Any) -> Any:
        """Follow a ``{"__ref": key}`` pointer; other values pass through."""
        if isinstance(value, dict) and "__ref" in value:
            return self._nodes.get(value["__ref"])
        return value

    def resolve_node(self, value: Any) -> Dict[str, Any]:
        resolved = self.resolve(value)
        return resolved if isinstance(resolved, dict) else {}

    def keys_with_prefix(self, prefix: str) -> Iterator[str]:
        return (key for key in self._nodes if key.startswith(prefix))

    def root_post(self) -> Optional[Dict[str, Any]]:
        """The post entity the root query points at, if any."""
        root = self.get("ROOT_QUERY")
        if root is None:
            return None
        for key, value in root.items():
            if not key.startswith(_POST_QUERY_PREFIXES):
                continue
            post = self.resolve(value)
            if isinstance(post, dict):
                return post
        return None

    def field(self, node: Dict[str, Any], name: str) -> Any:
        """Read a field that may be stored under an argument-bearing key.

        The cache writes ``content({"postMeteringOptions":{}})`` for a field
        requested with arguments; ``field(node, "content")`` finds either form.
        """
        if name in node:
            return node[name]
        prefix = name + "("
        for key, value in node.items():
            if key.startswith(prefix):
                return value
        return None

    def paragraphs(self, post: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Paragraph nodes in body order.

        Uses the post's body model when it lists paragraphs; otherwise every
        ``Paragraph:`` entity in the arena, in insertion order.
        """
        if post is not None:
            content = self.resolve_node(self.field(post, "content"))
            body = self.resolve_node(content.get("bodyModel"))
            refs = body.get("paragraphs")
            if isinstance(refs, list) and refs:
                nodes = [self.resolve(ref) for ref in refs]
                return [node for node in nodes if isinstance(node, dict)]
        return [node for node in (self.get(key) for key in self.keys_with_prefix(PARAGRAPH_PREFIX)) if node]


def paragraph_blocks(graph: StateGraph, paragraphs: List[Dict[str, Any]]) -> List[ContentBlock]:
    """Classify paragraph nodes into content blocks.

    Consecutive list-item paragraphs are grouped into one list block.
    Anchor markups become link blocks that follow their paragraph.
    """
    blocks: List[ContentBlock] = []
    pending_type: Optional[str] = None
    pending_items: List[str] = []
    pending_links: List[Link] = []

    def flush() -> None:
        nonlocal pending_type, pending_items, pending_links
        if pending_type is not None and pending_items:
            blocks.append(ListBlock(list_type=pending_type, items=tuple(pending_items)))
        blocks.extend(pending_links)
        pending_type, pending_items, pending_links = None, [], []

    for node in paragraphs:
        kind = str(node.get("type") or "")
        text = clean_text(node.get("text") or "")

        if kind in ("OLI", "ULI"):
            list_type = kind[:2].lower()
            if pending_type != list_type:
                flush()
                pending_type = list_type
            if text:
                pending_items.append(text)
            pending_links.extend(_link_blocks(node))
            continue

        flush()
        block = classify_paragraph(graph, node, kind, text)
        if block is not None:
            blocks.append(block)
        blocks.extend(_link_blocks(node))

    flush()
    return blocks


def classify_paragraph(graph: StateGraph, node: Dict[str, Any], kind: str, text: str) -> Optional[ContentBlock]:
    if kind in _HEADINGS:
        return Heading(level=_HEADINGS[kind], text=text) if text else None
    if kind == "P":
        return Paragraph(text=text) if text else None
    if kind in ("BQ", "PQ"):
        return Quote(text=text) if text else None
    if kind == "PRE":
        meta = node.get("codeBlockMetadata") or {}
        language = meta.get("lang") if isinstance(meta, dict) else None
        return Code(language=language or "unknown", text=node.get("text") or "")
    if kind == "IMG":
        meta = graph.resolve_node(node.get("metadata"))
        image_id = meta.get("id") or ""
        return Image(
            src=f"{IMAGE_CDN}/{image_id}" if image_id else "",
            alt=clean_text(meta.get("alt") or ""),
            caption=text,
        )
    if kind in ("OL", "UL"):
        items = tuple(clean_text(line) for line in (node.get("text") or "").split("\n") if line.strip())
        return ListBlock(list_type=kind.lower(), items=items)
    if not kind and not text:
        return None
    return UnknownBlock(source_type=kind or "unknown", text=text)


def _link_blocks(node: Dict[str, Any]) -> List[Link]:
    links: List[Link] = []
    text = node.get("text") or ""
    for markup in node.get("markups") or []:
        if not isinstance(markup, dict) or markup.get("type") != "A":
            continue
        href = markup.get("href") or ""
        if not href:
            continue
        start, end = markup.get("start") or 0, markup.get("end") or 0
        anchor = clean_text(text[start:end]) if isinstance(start, int) and isinstance(end, int) else ""
        links.append(Link(text=anchor, url=href, title=markup.get("title") or ""))
    return links


def post_fields(graph: StateGraph, post: Dict[str, Any]) -> Dict[str, Any]:
    """Scalar article metadata read straight from the post entity."""
    creator = graph.resolve_node(post.get("creator"))
    collection = graph.resolve_node(post.get("collection"))
    preview_image = graph.resolve_node(post.get("previewImage"))
    preview = graph.resolve_node(post.get("extendedPreviewContent") or post.get("previewContent"))
    sequence = graph.resolve_node(post.get("sequence"))
    responses = graph.resolve_node(post.get("postResponses"))

    username = creator.get("username") or ""
    tags = []
    for ref in post.get("tags") or []:
        tag = graph.resolve_node(ref)
        name = clean_text(tag.get("displayTitle") or tag.get("name") or tag.get("id") or "")
        if name:
            tags.append(name)

    series = None
    if sequence:
        slug = sequence.get("slug") or ""
        series = {
            "name": clean_text(sequence.get("title") or ""),
            "url": f"{BASE_URL}/sequence/{slug}" if slug else "",
            "part": str(post.get("sequenceIndex") or ""),
        }

    publication = None
    if collection:
        logo = graph.resolve_node(collection.get("avatar") or collection.get("logo"))
        publication = {
            "name": clean_text(collection.get("name") or ""),
            "url": _collection_url(collection),
            "logo": f"{IMAGE_CDN}/{logo['id']}" if logo.get("id") else "",
            "description": clean_text(collection.get("description") or ""),
            "followers": collection.get("subscriberCount") or 0,
        }

    return {
        "title": clean_text(post.get("title") or ""),
        "subtitle": clean_text(preview.get("subtitle") or post.get("subtitle") or ""),
        "author": clean_text(creator.get("name") or ""),
        "author_url": f"{BASE_URL}/@{username}" if username else "",
        "date": post.get("firstPublishedAt") or post.get("latestPublishedAt") or post.get("createdAt"),
        "read_time": post.get("readingTime") or 0,
        "claps": post.get("clapCount") or 0,
        "responses": responses.get("count") or post.get("responseCount") or 0,
        "tags": tags,
        "main_image": f"{IMAGE_CDN}/{preview_image['id']}" if preview_image.get("id") else "",
        "is_premium": bool(post.get("isLocked") or post.get("isMembers") or post.get("isMemberOnly")),
        "series": series,
        "publication": publication,
    }


def _collection_url(collection: Dict[str, Any]) -> str:
    domain = collection.get("domain")
    if domain:
        return f"https://{domain}"
    slug = collection.get("slug")
    return f"{BASE_URL}/{slug}" if slug else ""
