"""Utilities for rendering session results in the CLI."""

from __future__ import annotations

import json
from typing import List

from supacrawl.extraction.models import PageData, SessionResult


def render_json(result: SessionResult) -> str:
    """Return the result exactly as the API sent it, pretty-printed."""
    return json.dumps(result.to_wire(), indent=2, ensure_ascii=False)


def _page_line(page: PageData) -> str:
    metadata = page.metadata
    title = metadata.title if metadata and metadata.title else "(untitled)"
    source = (metadata.model_extra or {}).get("sourceURL") if metadata else None
    return f"{title}  <{source}>" if source else title


def render_summary(result: SessionResult) -> str:
    """Short human-readable overview of *result*."""
    lines: List[str] = []
    if result.kind == "crawl":
        lines.append(f"Status  : {result.status}")
        lines.append(f"Pages   : {result.completed}/{result.total}")
        lines.append(f"Credits : {result.credits_used}")
        for i, page in enumerate(result.data, start=1):
            lines.append(f"  {i:>3}. {_page_line(page)}")
        return "\n".join(lines)

    page = result.data
    metadata = page.metadata
    lines.append(f"Title       : {(metadata.title if metadata else None) or '(none)'}")
    lines.append(f"Description : {page.description or '(none)'}")
    lines.append(f"Markdown    : {len(page.markdown or '')} chars")
    lines.append(f"HTML        : {len(page.html or '')} chars")
    if page.markdown:
        lines.append("")
        lines.append(page.markdown)
    return "\n".join(lines)
