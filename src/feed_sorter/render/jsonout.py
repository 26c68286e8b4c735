"""JSON and JSONL item rendering."""

from __future__ import annotations

import json

from feed_sorter.models import DEFAULT_ITEM_URL_TEMPLATE, PostItem, item_url


def render_json(items: tuple[PostItem, ...], *, url_template: str = DEFAULT_ITEM_URL_TEMPLATE) -> str:
    return json.dumps(
        [post_item_to_dict(item, url_template=url_template) for item in items],
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    )


def render_jsonl(items: tuple[PostItem, ...], *, url_template: str = DEFAULT_ITEM_URL_TEMPLATE) -> str:
    return "\n".join(
        json.dumps(post_item_to_dict(item, url_template=url_template), sort_keys=True, ensure_ascii=False)
        for item in items
    )


def post_item_to_dict(
    item: PostItem,
    *,
    url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> dict[str, object]:
    return {
        "item_id": item.item_id,
        "author_name": item.author_name,
        "author_urn": item.author_urn or None,
        "text": item.text,
        "timestamp": item.timestamp.isoformat() if item.timestamp else None,
        "like_count": item.like_count,
        "comment_count": item.comment_count,
        "share_count": item.share_count,
        "is_promoted": item.is_promoted,
        "hashtags": list(item.hashtags),
        "url": item_url(item, url_template),
    }
