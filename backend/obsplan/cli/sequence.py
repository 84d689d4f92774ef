"""CLI utilities for inspecting and expanding observation sequences."""

# purpose: give operators a console surface over the step store and smart gcal expansion
# status: active
# depends_on: obsplan.database, obsplan.services.expansion, obsplan.services.step_store

from __future__ import annotations

import json
import logging

import typer

from ..database import SessionLocal, init_db, session_scope
from ..location import middle
from ..services import expansion, step_store
from ..smart_gcal import ExpansionResult, is_error
from ..steps import describe

app = typer.Typer(help="Observation sequence maintenance commands")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for obsplan loggers"),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_location(text: str):
    try:
        return middle(text)
    except (TypeError, ValueError) as exc:
        raise typer.BadParameter(str(exc))


def _result_payload(result: ExpansionResult) -> dict[str, object]:
    if is_error(result):
        return {"error": result.code, "detail": result.describe()}
    return {"steps": [describe(step) for step in result]}


def show_sequence(observation_id: str) -> list[dict[str, object]]:
    """Return the observation's steps as JSON-friendly records in location order."""

    session = SessionLocal()
    try:
        steps = step_store.select_all(session, observation_id)
        return [{"location": str(loc), **describe(step)} for loc, step in steps.items()]
    finally:
        session.close()


@app.command("init-db")
def init_db_command() -> None:
    """Create the sequence and smart gcal tables if they do not exist."""

    init_db()
    typer.echo(json.dumps({"initialized": True}))


@app.command("show")
def show_command(observation_id: str) -> None:
    """Print the sequence of an observation."""

    typer.echo(json.dumps(show_sequence(observation_id), indent=2))


@app.command("preview")
def preview_command(observation_id: str, location: str) -> None:
    """Print what the smart gcal step at LOCATION expands into, without writing."""

    loc = _parse_location(location)
    session = SessionLocal()
    try:
        result = expansion.preview(session, observation_id, loc)
    finally:
        session.close()
    typer.echo(json.dumps(_result_payload(result), indent=2))
    if is_error(result):
        raise typer.Exit(code=1)


@app.command("expand")
def expand_command(observation_id: str, location: str) -> None:
    """Replace the smart gcal step at LOCATION with concrete gcal steps."""

    loc = _parse_location(location)
    with session_scope() as session:
        result = expansion.expand(session, observation_id, loc)
    typer.echo(json.dumps(_result_payload(result), indent=2))
    if is_error(result):
        raise typer.Exit(code=1)


@app.command("expand-all")
def expand_all_command(observation_id: str) -> None:
    """Expand every smart gcal step in an observation."""

    with session_scope() as session:
        results = expansion.expand_observation(session, observation_id)
    summary = {str(loc): _result_payload(result) for loc, result in results.items()}
    typer.echo(json.dumps(summary, indent=2))


if __name__ == "__main__":
    app()
