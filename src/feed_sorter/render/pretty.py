"""Human-friendly item rendering."""

from __future__ import annotations

from feed_sorter.models import PostItem

PREVIEW_CHARS = 140


def render_pretty(items: tuple[PostItem, ...]) -> str:
    if not items:
        return "(no items)"

    lines: list[str] = []
    for rank, item in enumerate(items, start=1):
        timestamp = item.timestamp.isoformat() if item.timestamp else "-"
        promoted = " [promoted]" if item.is_promoted else ""
        lines.append(
            f"{rank:>3}. {item.author_name}{promoted} "
            f"likes={item.like_count} comments={item.comment_count} shares={item.share_count} "
            f"{timestamp} {item.item_id}"
        )
        if item.text:
            preview = item.text if len(item.text) <= PREVIEW_CHARS else f"{item.text[:PREVIEW_CHARS]}..."
            lines.append(f"     {preview}")
    return "\n".join(lines)
