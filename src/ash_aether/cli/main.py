"""Typer CLI application."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="ash-aether",
    help="Ash & Aether simulation core: content validation and save slots",
    no_args_is_help=True,
)


def _configure_logging(level_name: str) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _game_app(ctx: typer.Context):
    from ash_aether.app import GameApp

    if ctx.obj is None:
        ctx.obj = GameApp()
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a config.toml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Inspect game content and manage save slots."""
    from ash_aether.app import GameApp

    game_app = GameApp(config_path=config)
    level = "DEBUG" if verbose else game_app.config.get("logging", {}).get("level", "WARNING")
    _configure_logging(level)
    ctx.obj = game_app
    ctx.call_on_close(game_app.close)


@app.command()
def validate(
    ctx: typer.Context,
    content_dir: Optional[Path] = typer.Option(None, "--content-dir", help="Directory of content TOML files"),
) -> None:
    """Validate a content bundle (the shipped one by default)."""
    from ash_aether.cli.display import Display

    result = _game_app(ctx).validate_content(content_dir)
    Display().show_validation_result(result)
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def saves(ctx: typer.Context) -> None:
    """List the save slots."""
    from ash_aether.cli.display import Display

    Display().show_save_slots(_game_app(ctx).list_saves())


@app.command()
def new(
    ctx: typer.Context,
    slot: int = typer.Option(..., "--slot", "-s", help="Save slot to write"),
) -> None:
    """Start a new game and write it to a slot."""
    from ash_aether.cli.display import Display

    display = Display()
    try:
        session = _game_app(ctx).new_game(slot)
    except ValueError as exc:
        display.show_error(str(exc))
        raise typer.Exit(code=1)
    display.show_success(f"New game written to slot {slot}.")
    display.show_hud(session.get_hud_view_model())


@app.command()
def inspect(
    ctx: typer.Context,
    slot: int = typer.Option(..., "--slot", "-s", help="Save slot to read"),
) -> None:
    """Load a slot (migrating old formats) and show the HUD and quest journal."""
    from ash_aether.cli.display import Display

    display = Display()
    try:
        session = _game_app(ctx).load_game(slot)
    except ValueError as exc:
        display.show_error(str(exc))
        raise typer.Exit(code=1)
    if session is None:
        display.show_info(f"Slot {slot} is empty.")
        raise typer.Exit(code=1)
    display.show_hud(session.get_hud_view_model())
    display.show_quest_journal(session.get_quest_entries())


@app.command()
def clear(
    ctx: typer.Context,
    slot: int = typer.Option(..., "--slot", "-s", help="Save slot to delete"),
) -> None:
    """Delete a save slot."""
    from ash_aether.cli.display import Display

    display = Display()
    try:
        _game_app(ctx).clear_save(slot)
    except ValueError as exc:
        display.show_error(str(exc))
        raise typer.Exit(code=1)
    display.show_success(f"Slot {slot} cleared.")


if __name__ == "__main__":
    app()
