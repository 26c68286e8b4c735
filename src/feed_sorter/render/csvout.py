"""Spreadsheet-friendly CSV export of the sorted feed."""

from __future__ import annotations

import csv
import io
from pathlib import Path

from feed_sorter.errors import RenderError
from feed_sorter.models import DEFAULT_ITEM_URL_TEMPLATE, PostItem, item_url

CSV_HEADERS = ("#", "Author", "Post Text", "Likes", "Comments", "Shares", "Post URL")
TEXT_LIMIT = 500


def render_csv(items: tuple[PostItem, ...], *, url_template: str = DEFAULT_ITEM_URL_TEMPLATE) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for rank, item in enumerate(items, start=1):
        writer.writerow(
            (
                rank,
                item.author_name,
                item.text.replace("\r", " ").replace("\n", " ")[:TEXT_LIMIT],
                item.like_count,
                item.comment_count,
                item.share_count,
                item_url(item, url_template),
            )
        )
    return buffer.getvalue()


def write_export(path: str | Path, content: str, *, with_bom: bool = False) -> Path:
    """Write rendered export text; CSV exports carry a BOM so spreadsheets detect UTF-8."""
    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8-sig" if with_bom else "utf-8")
    except OSError as exc:
        raise RenderError(f"Could not write export file '{target}': {exc}.") from exc
    return target
