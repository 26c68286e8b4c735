"""Tab-separated item rendering for shell pipelines."""

from __future__ import annotations

from feed_sorter.models import PostItem


def render_plain(items: tuple[PostItem, ...]) -> str:
    lines: list[str] = []
    for item in items:
        timestamp = item.timestamp.isoformat() if item.timestamp else ""
        text = item.text.replace("\n", " ").replace("\t", " ")
        lines.append(
            "\t".join(
                (
                    item.item_id,
                    str(item.like_count),
                    str(item.comment_count),
                    str(item.share_count),
                    timestamp,
                    item.author_name,
                    text,
                )
            )
        )
    return "\n".join(lines)
