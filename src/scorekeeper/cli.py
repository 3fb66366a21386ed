"""CLI entrypoint.

Commands:
- scorekeeper init
- scorekeeper stages list|add|remove|move|update
- scorekeeper score

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit code 0 on success, non-zero on failure
  - Console output (stdout/stderr) describing stages and scores
- Invariants:
  - Stage mutations are saved to stages.json before the command returns
  - Catalog and scoring work is delegated to StageCatalog and Scoresheet
- Failure:
  - Invalid arguments and failed catalog operations raise Typer exit/error
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .artifacts.store import JsonStore
from .config import SETTINGS_FILE, Settings, read_settings
from .errors import Result, SessionIncompleteError, StageCatalogError
from .scoresheet import Scoresheet
from .stages import StageCatalog
from .util.ids import validate_stage_id

app = typer.Typer(add_completion=False, help="Tournament stage catalog and mission scoring.")
stages_app = typer.Typer(add_completion=False, help="Manage tournament stages.")
app.add_typer(stages_app, name="stages")

console = Console()


def _version_callback(value: bool):
    if value:
        from . import __version__

        console.print(f"scorekeeper version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    )
):
    pass


_SETTINGS_OPTION = typer.Option(
    Path(SETTINGS_FILE),
    "--settings",
    help="Settings YAML file.",
)


def _settings(path: Path) -> Settings:
    return read_settings(path)


def _catalog(settings: Settings) -> StageCatalog:
    try:
        return asyncio.run(StageCatalog.create(JsonStore(settings.data_dir)))
    except StageCatalogError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _check(result: Result) -> None:
    if not result.ok:
        assert result.error is not None
        console.print(f"[red]{escape(result.error.message)}[/red]")
        raise typer.Exit(code=1)


def _save(catalog: StageCatalog) -> None:
    _check(asyncio.run(catalog.save()))


def _print_stages(catalog: StageCatalog, show_all: bool) -> None:
    table = Table(title="Stages" if show_all else "Active stages")
    table.add_column("#")
    table.add_column("Id")
    table.add_column("Name")
    table.add_column("Rounds")
    for stage in catalog.all_stages if show_all else catalog.stages:
        table.add_row(str(stage.index), stage.id, stage.name, str(stage.rounds))
    console.print(table)


@app.command()
def init(
    directory: Path = typer.Option(Path("."), "--dir", help="Target directory."),
    force: bool = typer.Option(False, "--force", help="Overwrite existing files."),
) -> None:
    """Write settings.yaml and the default stages."""
    from .init import write_defaults

    for path in write_defaults(directory, force=force):
        console.print(f"[green]Wrote[/green] {path}")


@stages_app.command("list")
def stages_list(
    settings_file: Path = _SETTINGS_OPTION,
    show_all: bool = typer.Option(False, "--all", help="Include stages without rounds."),
) -> None:
    catalog = _catalog(_settings(settings_file))
    _print_stages(catalog, show_all)


@stages_app.command("add")
def stages_add(
    stage_id: str = typer.Argument(..., help="Unique stage id."),
    name: str = typer.Option("", "--name", help="Display name."),
    rounds: int = typer.Option(1, "--rounds", min=0, help="Number of rounds."),
    settings_file: Path = _SETTINGS_OPTION,
) -> None:
    catalog = _catalog(_settings(settings_file))
    try:
        validate_stage_id(stage_id)
        _check(catalog.add({"id": stage_id, "name": name or stage_id, "rounds": rounds}))
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    _save(catalog)
    _print_stages(catalog, True)


@stages_app.command("remove")
def stages_remove(
    stage_id: str = typer.Argument(..., help="Stage id."),
    settings_file: Path = _SETTINGS_OPTION,
) -> None:
    catalog = _catalog(_settings(settings_file))
    catalog.remove(stage_id)
    _save(catalog)
    _print_stages(catalog, True)


@stages_app.command("move")
def stages_move(
    stage_id: str = typer.Argument(..., help="Stage id."),
    by: int = typer.Option(..., "--by", help="Positions to move (negative moves up)."),
    settings_file: Path = _SETTINGS_OPTION,
) -> None:
    catalog = _catalog(_settings(settings_file))
    stage = catalog.get(stage_id)
    if stage is None:
        raise typer.BadParameter(f"Unknown stage: {stage_id}")
    _check(catalog.move_stage(stage, by))
    _save(catalog)
    _print_stages(catalog, True)


@stages_app.command("update")
def stages_update(
    stage_id: str = typer.Argument(..., help="Stage id."),
    name: str | None = typer.Option(None, "--name", help="New display name."),
    rounds: int | None = typer.Option(None, "--rounds", min=0, help="New number of rounds."),
    settings_file: Path = _SETTINGS_OPTION,
) -> None:
    from dataclasses import replace

    catalog = _catalog(_settings(settings_file))
    stage = catalog.get(stage_id)
    if stage is None:
        raise typer.BadParameter(f"Unknown stage: {stage_id}")
    changes: dict[str, object] = {}
    if name is not None:
        changes["name"] = name
    if rounds is not None:
        changes["rounds"] = rounds
    _check(catalog.update_stage(replace(stage, **changes)))
    _save(catalog)
    _print_stages(catalog, True)


def _parse_assignment(item: str) -> tuple[str, object]:
    if "=" not in item:
        raise typer.BadParameter(f"Expected NAME=VALUE, got: {item}")
    name, raw = item.split("=", 1)
    return name.strip(), yaml.safe_load(raw)


@app.command()
def score(
    assignments: list[str] = typer.Option([], "--set", help="Objective value, NAME=VALUE."),
    team: int | None = typer.Option(None, "--team", help="Team number."),
    stage_id: str | None = typer.Option(None, "--stage", help="Stage id."),
    round_: int | None = typer.Option(None, "--round", help="Round number."),
    signature: str | None = typer.Option(None, "--signature", help="Referee signature."),
    save: bool = typer.Option(False, "--save", help="Save the score."),
    settings_file: Path = _SETTINGS_OPTION,
) -> None:
    """Score one run of the configured challenge."""
    settings = _settings(settings_file)

    async def _run() -> None:
        try:
            sheet = await Scoresheet.create(settings)
        except StageCatalogError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(code=1) from e
        for item in assignments:
            name, value = _parse_assignment(item)
            if name not in sheet.objectives:
                raise typer.BadParameter(f"Unknown objective: {name}")
            sheet.set_objective(name, value)

        table = Table(title=str(sheet.field.get("title", settings.challenge)))
        table.add_column("Mission")
        table.add_column("Points")
        table.add_column("Bonus")
        table.add_column("Errors")
        for mission in sheet.missions:
            res = mission.result
            if res is None:
                continue
            table.add_row(
                mission.id,
                str(res.value),
                ", ".join(f"{p:.0%}" for p in res.percentages),
                "; ".join(str(e) for e in res.errors),
            )
        console.print(table)
        console.print(f"[bold]Score:[/bold] {sheet.score()}")

        if not save:
            return
        if team is not None:
            sheet.select_team({"number": team})
        if stage_id is not None:
            stage = sheet.catalog.get(stage_id)
            if stage is None:
                raise typer.BadParameter(f"Unknown stage: {stage_id}")
            sheet.choose_stage(stage)
        sheet.choose_round(round_)
        sheet.sign(signature)
        try:
            result = await sheet.save()
        except SessionIncompleteError as e:
            raise typer.BadParameter(str(e)) from e
        _check(result)
        assert result.value is not None
        console.print(f"[green]Saved[/green] {result.value.file}")

    asyncio.run(_run())


if __name__ == "__main__":
    app()
