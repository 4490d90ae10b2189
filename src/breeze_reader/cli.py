from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, TypedDict

import typer
import yaml

from .analytics import reading_stats
from .config import BreezeReaderConfig, load_config, reading_settings_from_dict
from .emphasis import emphasize
from .errors import (
    InvalidArgument,
    InvalidConfiguration,
    LibraryItemNotFound,
    VocabularyEntryNotFound,
)
from .library import LibraryService
from .lookup import build_lookup, clean_word, context_window
from .models import LibraryItem, ReadingMode, Token
from .orp import split_orp
from .pacing import PacingController
from .repository import JsonLibraryRepository, entry_to_dict
from .retention import ReviewSession, new_entry, search_vocabulary
from .scheduling import AsyncioScheduler, ManualScheduler, TimerScheduler
from .simplify import build_simplifier
from .timing import build_timeline, compute_delay_ms, format_duration
from .tokenization import tokenize

app = typer.Typer(help="Breeze Reader CLI.", no_args_is_help=True)

# File types `import` reads as plain text.
SUPPORTED_INPUT_EXTENSIONS = {".txt", ".md", ".text"}

# `read` writes the position to disk once per this many position changes.
POSITION_SAVE_INTERVAL = 25


class TokenPayload(TypedDict):
    index: int
    text: str
    orp: int
    left: str
    center: str
    right: str
    bold: str
    light: str
    delay_ms: float


class ExposurePayload(TypedDict):
    index: int
    text: str
    start_ms: float
    delay_ms: float


@app.callback()
def main_callback(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    """Configure logging for every sub-command."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = BreezeReaderConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


@app.command("tokenize")
def tokenize_command(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    config: Path | None = typer.Option(None, "--config", "-c"),
    wpm: int | None = typer.Option(None, "--wpm", help="Words per minute."),
    bold_ratio: float | None = typer.Option(None, "--bold-ratio", help="Share of each word to bold."),
) -> None:
    """Emit tokens with their ORP split, emphasis split and dwell time as JSON."""
    cfg = _load(config)
    _apply_reading_overrides(cfg, wpm=wpm, bold_ratio=bold_ratio)
    tokens = tokenize(_read_text(input_path))
    payload = [_token_dict(token, cfg) for token in tokens]
    typer.echo(json.dumps({"tokens": payload}, indent=2))


@app.command()
def timeline(
    input_path: Path | None = typer.Option(None, exists=True, readable=True, dir_okay=False),
    item_id: str | None = typer.Option(None, "--item-id", help="Library item to time."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
    wpm: int | None = typer.Option(None, "--wpm"),
    chunk_size: int | None = typer.Option(None, "--chunk-size"),
    mode: str | None = typer.Option(None, "--mode", help="single, chunk, flow or classic."),
    start: int = typer.Option(0, "--start", help="Token index to start from."),
) -> None:
    """Print the exposures a full play run would show, with their timing."""
    cfg = _load(config, library_path)
    _apply_reading_overrides(cfg, wpm=wpm, chunk_size=chunk_size, mode=mode)
    text = _resolve_text(cfg, input_path, item_id)
    exposures = build_timeline(tokenize(text), cfg.reading, start=start)
    payload: List[ExposurePayload] = [
        {
            "index": exposure.index,
            "text": exposure.text,
            "start_ms": round(exposure.start_ms, 3),
            "delay_ms": round(exposure.delay_ms, 3),
        }
        for exposure in exposures
    ]
    total_ms = exposures[-1].start_ms + exposures[-1].delay_ms if exposures else 0.0
    typer.echo(json.dumps({"exposures": payload, "total_ms": round(total_ms, 3)}, indent=2))


@app.command()
def read(
    item_id: str = typer.Option(..., "--item-id", help="Library item to read."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
    wpm: int | None = typer.Option(None, "--wpm"),
    chunk_size: int | None = typer.Option(None, "--chunk-size"),
    mode: str | None = typer.Option(None, "--mode"),
    from_start: bool = typer.Option(False, "--from-start", help="Ignore the saved position."),
    simulate: bool = typer.Option(
        False, "--simulate", help="Run on a virtual clock instead of real time."
    ),
) -> None:
    """Play a library item in the terminal, saving position and session."""
    cfg = _load(config, library_path)
    _apply_reading_overrides(cfg, wpm=wpm, chunk_size=chunk_size, mode=mode)
    service = _service(cfg)
    item = _get_item(service, item_id)
    tokens = tokenize(item.content)
    if not tokens:
        typer.echo("Nothing to read.")
        return

    scheduler: TimerScheduler = ManualScheduler() if simulate else AsyncioScheduler()
    controller = PacingController(
        tokens,
        cfg.reading,
        scheduler,
        initial_position=0 if from_start else item.last_position,
        on_position_changed=service.position_listener(item_id, every=POSITION_SAVE_INTERVAL),
        on_session_ended=service.session_listener(item_id),
    )
    controller.on_position_changed(lambda _: typer.echo(_render(controller)))
    typer.echo(
        f"{item.title}: {len(tokens)} words, about "
        f"{format_duration(controller.time_remaining_seconds)} left at {cfg.reading.wpm} wpm"
    )
    typer.echo(_render(controller))
    if isinstance(scheduler, ManualScheduler):
        controller.start()
        scheduler.run_all()
    else:
        try:
            asyncio.run(_play_until_finished(controller))
        except KeyboardInterrupt:
            controller.pause()
            service.update_position(item_id, controller.position)
            typer.echo(f"Paused at word {controller.position + 1}.")
            return
    service.update_position(item_id, controller.position)
    typer.echo(f"Finished '{item.title}'.")


@app.command("import")
def import_text(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    title: str | None = typer.Option(None, "--title"),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """Add a plain-text file to the library."""
    cfg = _load(config, library_path)
    if input_path.suffix.lower() not in SUPPORTED_INPUT_EXTENSIONS:
        raise typer.BadParameter(
            f"Unsupported file type '{input_path.suffix}'; use one of "
            f"{sorted(SUPPORTED_INPUT_EXTENSIONS)}."
        )
    try:
        item = _service(cfg).add_item(title or input_path.stem, _read_text(input_path))
    except InvalidArgument as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(json.dumps({"id": item.id, "title": item.title, "total_words": item.total_words}))


@app.command()
def library(
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """List library items with their reading progress."""
    cfg = _load(config, library_path)
    payload = [
        {
            "id": item.id,
            "title": item.title,
            "total_words": item.total_words,
            "last_position": item.last_position,
            "sessions": len(item.sessions),
            "vocabulary": len(item.vocabulary),
        }
        for item in _service(cfg).items()
    ]
    typer.echo(json.dumps({"items": payload}, indent=2))


@app.command()
def define(
    word: str = typer.Argument(..., help="Word (or token) to define."),
    item_id: str | None = typer.Option(None, "--item-id", help="Item supplying context."),
    position: int | None = typer.Option(None, "--position", help="Token index for context."),
    save: bool = typer.Option(False, "--save", help="Save the definition to the item's vocabulary."),
    dictionary_mode: str | None = typer.Option(None, "--dictionary-mode", help="standard or ai."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """Look up a word, optionally saving it for review."""
    cfg = _load(config, library_path)
    _apply_reading_overrides(cfg, dictionary_mode=dictionary_mode)
    cleaned = clean_word(word)
    if not cleaned:
        raise typer.BadParameter(f"'{word}' has no letters or digits to look up.")
    service = _service(cfg)
    context = ""
    if item_id is not None:
        item = _get_item(service, item_id)
        tokens = tokenize(item.content)
        index = item.last_position if position is None else position
        context = context_window(tokens, index)
    elif save:
        raise typer.BadParameter("--save needs --item-id.")
    result = build_lookup(cfg).define(cleaned, context)
    payload: Dict[str, Any] = {
        "word": cleaned,
        "definition": result.definition,
        "examples": list(result.examples),
    }
    if save and item_id is not None:
        entry = new_entry(cleaned, result.definition, result.examples[:1])
        service.add_vocabulary(item_id, entry)
        payload["saved"] = entry.id
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def review(
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """Review due vocabulary, grading each card hard, good or easy."""
    cfg = _load(config, library_path)
    service = _service(cfg)
    session = ReviewSession(service.all_vocabulary(), on_graded=service.replace_entry)
    if session.finished:
        typer.echo("Nothing due for review.")
        return
    typer.echo(f"{session.remaining} card(s) due.")
    card = session.current
    while card is not None:
        typer.echo(f"\n{card.word}")
        typer.prompt("Press enter to reveal", default="", show_default=False)
        typer.echo(card.definition)
        for example in card.examples[:1]:
            typer.echo(f'  "{example}"')
        while True:
            answer = typer.prompt("Rating [hard/good/easy]")
            try:
                updated = session.grade_current(answer)
            except InvalidArgument as exc:
                typer.echo(str(exc), err=True)
                continue
            except VocabularyEntryNotFound as exc:
                typer.echo(f"{exc} It was removed during the review.", err=True)
                raise typer.Exit(code=1) from exc
            break
        typer.echo(
            f"Proficiency {updated.proficiency}, next review {updated.next_review.isoformat()}"
        )
        card = session.current
    typer.echo(f"\nReviewed {len(session.graded)} card(s).")


@app.command()
def stats(
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """Emit reading analytics as JSON."""
    cfg = _load(config, library_path)
    summary = reading_stats(_service(cfg).items())
    typer.echo(
        json.dumps(
            {
                "total_words": summary.total_words,
                "total_hours": summary.total_hours,
                "avg_wpm": summary.avg_wpm,
                "current_streak": summary.current_streak,
                "sessions": summary.session_count,
                "last_7_days": [
                    {"day": day.day.isoformat(), "words_read": day.words_read}
                    for day in summary.chart
                ],
            },
            indent=2,
        )
    )


@app.command()
def vocabulary(
    query: str = typer.Option("", "--search", help="Only words containing this text."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """List saved vocabulary, newest first."""
    cfg = _load(config, library_path)
    entries = search_vocabulary(_service(cfg).all_vocabulary(), query)
    typer.echo(json.dumps({"vocabulary": [entry_to_dict(entry) for entry in entries]}, indent=2))


@app.command()
def simplify(
    item_id: str = typer.Option(..., "--item-id"),
    config: Path | None = typer.Option(None, "--config", "-c"),
    library_path: Path | None = typer.Option(None, "--library-path"),
) -> None:
    """Rewrite an item into easier text (requires OpenAI to be enabled)."""
    cfg = _load(config, library_path)
    if not cfg.openai.enabled:
        raise typer.BadParameter("Enable openai in the config to simplify text.")
    service = _service(cfg)
    _get_item(service, item_id)
    item = service.simplify_item(item_id, build_simplifier(cfg))
    typer.echo(f"Simplified '{item.title}' to {item.total_words} words.")


def main() -> None:
    app()


async def _play_until_finished(controller: PacingController) -> None:
    done = asyncio.Event()
    controller.on_session_ended(lambda *_: done.set())
    controller.start()
    await done.wait()


def _load(config: Path | None, library_path: Path | None = None) -> BreezeReaderConfig:
    try:
        cfg = load_config(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if library_path is not None:
        cfg.library_path = str(library_path)
    return cfg


def _apply_reading_overrides(config: BreezeReaderConfig, **overrides: Any) -> None:
    """Apply CLI overrides to the reading settings, rejecting unusable values."""
    values = {key: value for key, value in overrides.items() if value is not None}
    if not values:
        return
    current = config.to_dict()["reading"]
    current.update(values)
    try:
        config.reading = reading_settings_from_dict(current).validate()
    except InvalidConfiguration as exc:
        raise typer.BadParameter(str(exc)) from exc


def _service(config: BreezeReaderConfig) -> LibraryService:
    return LibraryService(JsonLibraryRepository(config.library_path))


def _get_item(service: LibraryService, item_id: str) -> LibraryItem:
    try:
        return service.get_item(item_id)
    except LibraryItemNotFound as exc:
        raise typer.BadParameter(str(exc)) from exc


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _resolve_text(config: BreezeReaderConfig, input_path: Path | None, item_id: str | None) -> str:
    if input_path is not None:
        return _read_text(input_path)
    if item_id is not None:
        return _get_item(_service(config), item_id).content
    raise typer.BadParameter("Provide --input-path or --item-id.")


def _token_dict(token: Token, config: BreezeReaderConfig) -> TokenPayload:
    orp = split_orp(token.text)
    emphasis = emphasize(token.text, config.reading.bold_ratio)
    return {
        "index": token.index,
        "text": token.text,
        "orp": orp.orp,
        "left": orp.left,
        "center": orp.center,
        "right": orp.right,
        "bold": emphasis.bold,
        "light": emphasis.light,
        "delay_ms": round(compute_delay_ms(token, config.reading), 3),
    }


def _render(controller: PacingController) -> str:
    """Terminal frame: ORP-marked word for single/flow, emphasized words otherwise."""
    mode = controller.settings.mode
    if mode in (ReadingMode.SINGLE, ReadingMode.FLOW):
        current = controller.current_token
        parts = []
        for token in controller.visible_tokens():
            if current is not None and token.index == current.index:
                split = split_orp(token.text)
                parts.append(split.left + typer.style(split.center, fg="red", bold=True) + split.right)
            else:
                parts.append(token.text)
        return " ".join(parts)
    bold_ratio = controller.settings.bold_ratio
    visible = controller.visible_tokens()
    if mode is ReadingMode.CLASSIC:
        visible = visible[controller.position : controller.position + 1]
    rendered = []
    for token in visible:
        split = emphasize(token.text, bold_ratio)
        rendered.append(
            split.prefix + typer.style(split.bold, bold=True) + split.light + split.suffix
        )
    return " ".join(rendered)


if __name__ == "__main__":
    main()
