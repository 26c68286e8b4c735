"""Render contracts and concrete output formatters."""

from __future__ import annotations

from collections.abc import Callable

from feed_sorter.errors import RenderError
from feed_sorter.models import DEFAULT_ITEM_URL_TEMPLATE, PostItem
from feed_sorter.render.base import (
    FeedRenderer,
    RenderReport,
    RenderRequest,
    build_render_request,
)
from feed_sorter.render.csvout import render_csv, write_export
from feed_sorter.render.jsonout import post_item_to_dict, render_json, render_jsonl
from feed_sorter.render.plain import render_plain
from feed_sorter.render.pretty import render_pretty

OUTPUT_FORMATS = ("pretty", "plain", "json", "jsonl", "csv")


def render_items(
    items: tuple[PostItem, ...],
    output_format: str,
    *,
    url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
) -> str:
    if output_format == "pretty":
        return render_pretty(items)
    if output_format == "plain":
        return render_plain(items)
    if output_format == "json":
        return render_json(items, url_template=url_template)
    if output_format == "jsonl":
        return render_jsonl(items, url_template=url_template)
    if output_format == "csv":
        return render_csv(items, url_template=url_template)
    raise RenderError(
        f"Unsupported output format '{output_format}'. Use one of: {', '.join(OUTPUT_FORMATS)}."
    )


class OutputRenderer:
    """Render collaborator that writes the ordered feed as text."""

    def __init__(
        self,
        output_format: str,
        emit: Callable[[str], object],
        *,
        url_template: str = DEFAULT_ITEM_URL_TEMPLATE,
    ) -> None:
        if output_format not in OUTPUT_FORMATS:
            raise RenderError(
                f"Unsupported output format '{output_format}'. Use one of: {', '.join(OUTPUT_FORMATS)}."
            )
        self._output_format = output_format
        self._emit = emit
        self._url_template = url_template

    def apply(self, request: RenderRequest) -> RenderReport:
        items = request.items()
        missing = len(request.ordered_ids) - len(items)
        try:
            rendered = render_items(items, self._output_format, url_template=self._url_template)
            if rendered:
                self._emit(rendered)
        except (RenderError, OSError) as exc:
            return RenderReport(success=False, applied_count=0, message=str(exc))
        message = f"Rendered {len(items)} item(s)."
        if missing:
            message = f"{message} {missing} id(s) had no display data."
        return RenderReport(success=True, applied_count=len(items), message=message)


__all__ = [
    "FeedRenderer",
    "OUTPUT_FORMATS",
    "OutputRenderer",
    "RenderReport",
    "RenderRequest",
    "build_render_request",
    "post_item_to_dict",
    "render_csv",
    "render_items",
    "render_json",
    "render_jsonl",
    "render_plain",
    "render_pretty",
    "write_export",
]
