"""Typer CLI for feed-sorter workflows."""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer

from . import __version__
from .browser import (
    DEFAULT_LOGIN_URL,
    PageFeedSource,
    PlaywrightBrowserSession,
    detect_variant,
    existing_storage_state,
    install_feed_interceptor,
    login_and_save_storage_state,
)
from .collectors import CollectionController, bounds_for_variant
from .config import (
    VALID_OUTPUT_FORMATS,
    RuntimeConfig,
    config_to_dict,
    init_default_config,
    load_runtime_config,
    resolve_config_path,
    resolve_data_dir,
    resolve_db_path,
)
from .diagnostics.events import JsonlEventLogger
from .errors import (
    BrowserError,
    CollectError,
    ConfigError,
    DiagnosticsError,
    ExtractError,
    FusionError,
    RenderError,
    SessionError,
    SortError,
    StoreError,
)
from .extract import scraped_observation_from_mapping
from .fusion import FusionReport, FusionStore, ingest_scraped, ingest_structured_payload
from .logging import configure_logging
from .models import CollectionMode, FeedVariant, SessionState, SortKey
from .render import OutputRenderer, render_items
from .render.csvout import write_export
from .scheduler import (
    STATUS_RENDER_FAILED,
    CollectionStateMachine,
    resolve_requested_size,
    run_collection,
    select_items,
)
from .sorting import DateRange, date_range_from_dates, date_range_from_preset, parse_sort_key
from .store import SQLiteStore

app = typer.Typer(help="Collect, fuse and rank social feed posts by engagement.")

config_app = typer.Typer(help="Config commands.")
state_app = typer.Typer(help="Collection session state commands.")
browser_app = typer.Typer(help="Browser session commands.")

app.add_typer(config_app, name="config")
app.add_typer(state_app, name="state")
app.add_typer(browser_app, name="browser")

_PATH_HELP = "Optional config TOML path (defaults to platform config dir)."
_SESSION_HELP = "Session key (defaults to configured app.default_session)."


@config_app.command("init")
def config_init(
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    try:
        written_path = init_default_config(path, force=force)
    except ConfigError as exc:
        typer.secho(f"Config init failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(f"Wrote default config to {written_path}")


@config_app.command("show")
def config_show(
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    as_json: bool = typer.Option(False, "--json", help="Render resolved config as JSON."),
) -> None:
    resolved_path = resolve_config_path(path)
    try:
        config = load_runtime_config(path)
    except ConfigError as exc:
        typer.secho(f"Config show failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    payload = {
        "path": str(resolved_path),
        "db_path": str(resolve_db_path(config)),
        "config": config_to_dict(config),
    }
    if as_json:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(f"Resolved config path: {payload['path']}")
    typer.echo(f"Database: {payload['db_path']}")
    typer.echo(f"Default session: {config.app.default_session}")
    typer.echo(f"Default format: {config.app.default_format}")
    typer.echo(
        f"Collection: count={config.collection.default_count} sort={config.collection.sort_key} "
        f"mode={config.collection.mode} variant={config.collection.variant}"
    )


@state_app.command("show")
def state_show(
    ctx: typer.Context,
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    as_json: bool = typer.Option(False, "--json", help="Render session state as JSON."),
) -> None:
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            state = store.get(session_key) or SessionState()
            item_count = len(store.load_items(session_key))
            runs = store.recent_runs(session_key, limit=3)
    except (ConfigError, StoreError) as exc:
        typer.secho(f"State show failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    payload = _state_payload(session_key, state, item_count)
    payload["recent_runs"] = [
        {
            "run_id": run.run_id,
            "status": run.status,
            "stop_reason": run.stop_reason,
            "fused_count": run.fused_count,
            "emitted_count": run.emitted_count,
            "started_at": run.started_at.isoformat() if run.started_at else None,
            "finished_at": run.finished_at.isoformat() if run.finished_at else None,
        }
        for run in runs
    ]
    if as_json:
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(f"Session: {session_key}")
    typer.echo(f"Phase: {state.phase.value}")
    requested = "all" if state.collect_all else state.requested_size
    typer.echo(f"Requested: {requested} (target {state.target_size})")
    typer.echo(f"Progress: {state.progress} | fused: {state.fused_count} | stored items: {item_count}")
    for run in payload["recent_runs"]:
        typer.echo(
            f"- run {run['run_id']} [{run['status']}] stop={run['stop_reason']} "
            f"emitted={run['emitted_count']}"
        )


@state_app.command("stop")
def state_stop(
    ctx: typer.Context,
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
) -> None:
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            state = CollectionStateMachine(store, session_key=session_key).stop()
    except (ConfigError, StoreError, SessionError) as exc:
        typer.secho(f"State stop failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(f"Session '{session_key}' is {state.phase.value}.")


@state_app.command("reset")
def state_reset(
    ctx: typer.Context,
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    clear_items: bool = typer.Option(
        False, "--clear-items", help="Also discard the fused items stored for the session."
    ),
) -> None:
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            CollectionStateMachine(store, session_key=session_key).reset()
            removed = store.clear_items(session_key) if clear_items else 0
    except (ConfigError, StoreError, SessionError) as exc:
        typer.secho(f"State reset failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    suffix = f"; removed {removed} stored item(s)" if clear_items else ""
    typer.echo(f"Session '{session_key}' reset to idle{suffix}.")


@browser_app.command("login")
def browser_login(
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    login_url: str = typer.Option(
        DEFAULT_LOGIN_URL,
        "--login-url",
        help="Login URL to open before capturing Playwright storage_state.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to save storage_state (defaults to browser.storage_state or the data dir).",
    ),
) -> None:
    """Sign in through a visible browser and save the session for `collect`."""
    try:
        config = load_runtime_config(path, missing_ok=True)
        saved = login_and_save_storage_state(
            config,
            _wait_for_login,
            login_url=login_url,
            target_path=output,
            session_factory=PlaywrightBrowserSession,
        )
    except (ConfigError, BrowserError) as exc:
        typer.secho(f"Browser login failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(f"Saved storage_state to {saved}")


@app.command("ingest")
def ingest(
    ctx: typer.Context,
    payload_files: list[Path] = typer.Argument(..., help="Structured feed response JSON file(s)."),
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
) -> None:
    """Merge captured structured feed responses into the stored fused set."""
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            fusion = FusionStore(store.load_items(session_key))
            reports: list[FusionReport] = []
            dropped = 0
            for payload_file in payload_files:
                report = ingest_structured_payload(fusion, _read_json(payload_file))
                if report is None:
                    dropped += 1
                    continue
                reports.append(report)
            store.save_items(session_key, fusion.snapshot())
    except (ConfigError, StoreError, ExtractError, FusionError) as exc:
        typer.secho(f"Ingest failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(
        f"Ingested {len(reports)} payload(s): inserted={sum(r.inserted for r in reports)} "
        f"replaced={sum(r.replaced for r in reports)} unchanged={sum(r.unchanged for r in reports)} "
        f"dropped={dropped} fused={len(fusion)}"
    )
    if payload_files and dropped == len(payload_files):
        raise typer.Exit(2)


@app.command("correct")
def correct(
    ctx: typer.Context,
    observations_file: Path = typer.Argument(..., help="JSON array of scraped feed entries."),
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    mode: str | None = typer.Option(
        None, "--mode", help="Collection mode: lite|synced|precision (defaults to config)."
    ),
) -> None:
    """Merge scraped observations into the stored fused set according to the mode."""
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        resolved_mode = _parse_mode(mode or config.collection.mode)
        raw_entries = _read_json(observations_file)
        if not isinstance(raw_entries, list):
            raise ExtractError(f"'{observations_file}' must contain a JSON array of scraped entries.")
        observations = [
            observation
            for observation in (scraped_observation_from_mapping(entry) for entry in raw_entries)
            if observation is not None
        ]
        with SQLiteStore(resolve_db_path(config)) as store:
            fusion = FusionStore(store.load_items(session_key))
            report = ingest_scraped(fusion, observations, mode=resolved_mode)
            store.save_items(session_key, fusion.snapshot())
    except (ConfigError, StoreError, ExtractError, FusionError, SessionError) as exc:
        typer.secho(f"Correct failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(
        f"Applied {len(observations)} observation(s) in {resolved_mode.value} mode: "
        f"inserted={report.inserted} updated={report.updated} unchanged={report.unchanged} "
        f"ignored={report.ignored} fused={report.fused_count}"
    )


@app.command("sort")
def sort(
    ctx: typer.Context,
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    sort_key: str | None = typer.Option(
        None, "--sort", help="Sort key: likes|comments|shares|engagement."
    ),
    count: str | None = typer.Option(None, "--count", help="Items to emit, or 'all'."),
    preset: str | None = typer.Option(
        None, "--preset", help="Date preset: week|month1|month3|month6|year1|all."
    ),
    date_from: datetime | None = typer.Option(None, "--from", formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD)."),
    date_to: datetime | None = typer.Option(None, "--to", formats=["%Y-%m-%d"], help="Last day (YYYY-MM-DD)."),
) -> None:
    """Sort and trim the stored fused set and print it."""
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            state = store.get(session_key) or SessionState()
            items = select_items(
                store.load_items(session_key),
                sort_key=_resolve_sort_key(sort_key, state, config),
                target_size=resolve_requested_size(
                    count or config.collection.default_count, max_size=config.collection.max_count
                ),
                date_range=_resolve_date_range(preset, date_from, date_to, config),
            )
        output_format = _resolve_output_format(ctx, config_default=config.app.default_format)
        rendered = render_items(items, output_format, url_template=config.app.item_url_template)
    except (ConfigError, StoreError, SessionError, SortError, RenderError) as exc:
        typer.secho(f"Sort failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    if rendered:
        typer.echo(rendered)


@app.command("export")
def export(
    ctx: typer.Context,
    output: Path = typer.Option(..., "--output", "-o", help="File to write."),
    export_format: str = typer.Option("csv", "--export-format", help="Export format: csv|json."),
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    sort_key: str | None = typer.Option(
        None, "--sort", help="Sort key: likes|comments|shares|engagement."
    ),
    count: str | None = typer.Option(None, "--count", help="Items to export, or 'all'."),
    preset: str | None = typer.Option(
        None, "--preset", help="Date preset: week|month1|month3|month6|year1|all."
    ),
    date_from: datetime | None = typer.Option(None, "--from", formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD)."),
    date_to: datetime | None = typer.Option(None, "--to", formats=["%Y-%m-%d"], help="Last day (YYYY-MM-DD)."),
) -> None:
    """Write the sorted fused set to a CSV or JSON file."""
    try:
        if export_format not in {"csv", "json"}:
            raise RenderError(f"Unsupported export format '{export_format}'. Use csv or json.")
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        with SQLiteStore(resolve_db_path(config)) as store:
            state = store.get(session_key) or SessionState()
            items = select_items(
                store.load_items(session_key),
                sort_key=_resolve_sort_key(sort_key, state, config),
                target_size=resolve_requested_size(
                    count or "all", max_size=config.collection.max_count
                ),
                date_range=_resolve_date_range(preset, date_from, date_to, config),
            )
        content = render_items(items, export_format, url_template=config.app.item_url_template)
        written = write_export(output, content, with_bom=export_format == "csv")
    except (ConfigError, StoreError, SessionError, SortError, RenderError) as exc:
        typer.secho(f"Export failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.echo(f"Exported {len(items)} item(s) to {written}")


@app.command("collect")
def collect(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Feed URL to open, e.g. https://www.linkedin.com/feed/."),
    path: str | None = typer.Option(None, "--path", help=_PATH_HELP),
    session: str | None = typer.Option(None, "--session", help=_SESSION_HELP),
    count: str | None = typer.Option(None, "--count", help="Items to collect, or 'all'."),
    sort_key: str | None = typer.Option(
        None, "--sort", help="Sort key: likes|comments|shares|engagement."
    ),
    mode: str | None = typer.Option(None, "--mode", help="Collection mode: lite|synced|precision."),
    variant: str | None = typer.Option(
        None, "--variant", help="Feed variant: main-feed|profile-feed (detected from URL when omitted)."
    ),
    preset: str | None = typer.Option(
        None, "--preset", help="Date preset: week|month1|month3|month6|year1|all."
    ),
    date_from: datetime | None = typer.Option(None, "--from", formats=["%Y-%m-%d"], help="First day (YYYY-MM-DD)."),
    date_to: datetime | None = typer.Option(None, "--to", formats=["%Y-%m-%d"], help="Last day (YYYY-MM-DD)."),
    headless: bool | None = typer.Option(
        None, "--headless/--headful", help="Override configured browser.headless."
    ),
) -> None:
    """Open a feed in a browser, collect until the target is met, then print the sorted result.

    A session left collecting by an interrupted run is resumed with its stored
    target, sort key, mode and variant.
    """
    try:
        config = load_runtime_config(path, missing_ok=True)
        session_key = _resolve_session(session, ctx, config)
        output_format = _resolve_output_format(ctx, config_default=config.app.default_format)
        date_range = _resolve_date_range(preset, date_from, date_to, config)
        requested = count or config.collection.default_count
        resolve_requested_size(requested, max_size=config.collection.max_count)
        event_logger = _event_logger() if _resolve_debug(ctx) or config.app.debug else None

        with SQLiteStore(resolve_db_path(config)) as store:
            state_machine = CollectionStateMachine(store, session_key=session_key)
            stored = state_machine.state
            if stored.is_collecting:
                resolved_mode = stored.mode
                resolved_variant = stored.variant
                typer.secho(
                    f"Resuming interrupted collection for session '{session_key}' "
                    f"(target {stored.target_size if stored.target_size is not None else 'all'}, "
                    f"sort {stored.sort_key.value if stored.sort_key else 'unset'}).",
                    err=True,
                    fg=typer.colors.YELLOW,
                )
            else:
                resolved_mode = _parse_mode(mode or config.collection.mode)
                resolved_variant = _parse_variant(variant) if variant else detect_variant(url)
            resolved_sort = _resolve_sort_key(sort_key, stored, config)
            controller = CollectionController(
                bounds_for_variant(
                    resolved_variant,
                    max_iterations=config.collection.max_iterations,
                    stall_threshold=config.collection.stall_threshold,
                    no_progress_threshold=config.collection.no_progress_threshold,
                ),
                mode=resolved_mode,
            )
            fusion = FusionStore(store.load_items(session_key))
            with PlaywrightBrowserSession(
                config, headless=headless, storage_state=existing_storage_state(config)
            ) as browser:
                page = browser.new_page()
                interceptor = install_feed_interceptor(page, fusion)
                browser.navigate(page, url)
                try:
                    result = run_collection(
                        PageFeedSource(page, config.selectors),
                        state_machine=state_machine,
                        controller=controller,
                        requested=requested,
                        sort_key=resolved_sort,
                        mode=resolved_mode,
                        variant=resolved_variant,
                        fusion=fusion,
                        item_store=store,
                        renderer=OutputRenderer(
                            output_format, typer.echo, url_template=config.app.item_url_template
                        ),
                        date_range=date_range,
                        ledger=store,
                        event_logger=event_logger,
                    )
                except KeyboardInterrupt as exc:
                    state_machine.stop()
                    store.save_items(session_key, fusion.snapshot())
                    typer.secho("Collection interrupted; progress saved.", err=True, fg=typer.colors.YELLOW)
                    raise typer.Exit(130) from exc
                finally:
                    interceptor.uninstall()
    except (
        ConfigError,
        BrowserError,
        CollectError,
        DiagnosticsError,
        FusionError,
        RenderError,
        SessionError,
        SortError,
        StoreError,
    ) as exc:
        typer.secho(f"Collect failed: {exc}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2) from exc

    typer.secho(
        f"Collect {result.status}: emitted {result.emitted_count} of "
        f"{result.requested_size if result.requested_size is not None else 'all'} "
        f"(fused {result.fused_count}, stop: {result.stop_reason}, "
        f"structured responses: {interceptor.stats.ingested})",
        err=True,
    )
    if result.status == STATUS_RENDER_FAILED:
        message = result.render_report.message if result.render_report else "unknown error"
        typer.secho(f"Render failed: {message}", err=True, fg=typer.colors.RED)
        raise typer.Exit(2)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show feed-sorter version and exit."),
    session: str | None = typer.Option(
        None,
        "--session",
        help="Active session override used by commands when they omit --session.",
    ),
    output_format: str | None = typer.Option(
        None,
        "--format",
        help="Output format: pretty|plain|json|jsonl|csv.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging and event log."),
) -> None:
    ctx.obj = {
        "session": session,
        "output_format": output_format,
        "debug": debug,
    }
    if version:
        typer.echo(__version__)
        raise typer.Exit()
    configure_logging(debug)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _state_payload(session_key: str, state: SessionState, item_count: int) -> dict[str, Any]:
    return {
        "session": session_key,
        "phase": state.phase.value,
        "requested_size": state.requested_size,
        "target_size": state.target_size,
        "collect_all": state.collect_all,
        "sort_key": state.sort_key.value if state.sort_key else None,
        "mode": state.mode.value,
        "variant": state.variant.value,
        "fused_count": state.fused_count,
        "progress": state.progress,
        "stored_items": item_count,
        "started_at": state.started_at.isoformat() if state.started_at else None,
        "updated_at": state.updated_at.isoformat() if state.updated_at else None,
    }


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ExtractError(f"Could not read '{path}': {exc}.") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExtractError(f"'{path}' is not valid JSON: {exc}.") from exc


def _parse_mode(raw: str) -> CollectionMode:
    try:
        return CollectionMode(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in CollectionMode)
        raise SessionError(f"Unsupported collection mode '{raw}'. Use one of: {choices}.") from exc


def _parse_variant(raw: str) -> FeedVariant:
    try:
        return FeedVariant(raw.strip().lower())
    except ValueError as exc:
        choices = ", ".join(variant.value for variant in FeedVariant)
        raise SessionError(f"Unsupported feed variant '{raw}'. Use one of: {choices}.") from exc


def _resolve_sort_key(raw: str | None, state: SessionState, config: RuntimeConfig) -> SortKey:
    if raw:
        return parse_sort_key(raw)
    if state.sort_key is not None:
        return state.sort_key
    return parse_sort_key(config.collection.sort_key)


def _resolve_date_range(
    preset: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
    config: RuntimeConfig,
) -> DateRange | None:
    if preset and (date_from or date_to):
        raise SortError("Use either --preset or --from/--to, not both.")
    if preset:
        return date_range_from_preset(preset)
    return date_range_from_dates(
        date_from.date() if date_from else None,
        date_to.date() if date_to else None,
        tz=_resolve_timezone(config),
    )


def _resolve_timezone(config: RuntimeConfig) -> ZoneInfo:
    try:
        return ZoneInfo(config.app.timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(
            f"Invalid value for 'app.timezone': unknown timezone '{config.app.timezone}'."
        ) from exc


def _resolve_session(command_session: str | None, ctx: typer.Context | None, config: RuntimeConfig) -> str:
    if command_session:
        return command_session
    if ctx is not None and isinstance(ctx.obj, dict):
        configured = ctx.obj.get("session")
        if isinstance(configured, str) and configured:
            return configured
    return config.app.default_session


def _resolve_output_format(ctx: typer.Context | None, *, config_default: str) -> str:
    configured: str | None = None
    if ctx is not None and isinstance(ctx.obj, dict):
        value = ctx.obj.get("output_format")
        if isinstance(value, str) and value:
            configured = value
    resolved = configured or config_default
    if resolved not in VALID_OUTPUT_FORMATS:
        supported = ", ".join(sorted(VALID_OUTPUT_FORMATS))
        raise RenderError(
            f"Invalid output format '{resolved}'. Supported formats: {supported}."
        )
    return resolved


def _resolve_debug(ctx: typer.Context | None) -> bool:
    if ctx is None or not isinstance(ctx.obj, dict):
        return False
    return bool(ctx.obj.get("debug", False))


def _event_logger() -> JsonlEventLogger:
    return JsonlEventLogger(resolve_data_dir() / "logs" / "debug-events.jsonl")


def _wait_for_login() -> None:
    typer.prompt(
        "Complete login in the opened browser window, then press Enter to save the session",
        default="",
        show_default=False,
    )
