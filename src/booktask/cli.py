from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import find_dotenv, load_dotenv

from .config import Project, load_project
from .errors import TaskError
from .logging import get_logger, log_to_file, refresh_level
from .platforms import detect_host, parse_host
from .runner import Executor, Invocation


app = typer.Typer(add_completion=False, help="Task runner for the book and its demos")
log = get_logger("booktask.cli")


def list_tasks(project: Project) -> None:
    registry = project.registry
    if not len(registry):
        typer.echo(f"No tasks defined in {project.path}")
        return
    width = max(len(name) for name in registry.names())
    typer.echo("Available tasks:")
    for name in registry.names():
        task = registry.lookup(name)
        line = f"    {name.ljust(width)}"
        if task.description:
            line += f" # {task.description}"
        platforms = [p for p in task.platforms if p != "any"]
        if platforms:
            line += f" [{', '.join(platforms)}]"
        typer.echo(line.rstrip())


@app.command(context_settings={"allow_interspersed_args": False})
def main_command(
    task: Optional[str] = typer.Argument(None, help="Task to run; omit to list tasks"),
    args: Optional[List[str]] = typer.Argument(
        None, help="Extra arguments, exported to commands as BOOKTASK_ARGS"
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-f",
        help="Path to booktasks.yaml [env: BOOKTASK_CONFIG] (default: search upwards from cwd)",
    ),
    platform: Optional[str] = typer.Option(
        None,
        "--platform",
        help="Resolve variants for this platform (windows or unix) instead of the host "
        "[env: BOOKTASK_PLATFORM]",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Print commands instead of running them"
    ),
    list_only: bool = typer.Option(False, "--list", "-l", help="List tasks and exit"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write logs to this file [env: BOOKTASK_LOG_FILE]"
    ),
):
    """Run TASK after its prerequisites, stopping at the first failing command."""
    # .env is looked up from the working directory, not from the installed package
    load_dotenv(find_dotenv(usecwd=True))
    refresh_level()
    config = config or _env_path("BOOKTASK_CONFIG")
    platform = platform or os.getenv("BOOKTASK_PLATFORM") or None
    log_file = log_file or _env_path("BOOKTASK_LOG_FILE")
    with log_to_file(log_file):
        code = _run(task, args or [], config, platform, dry_run, list_only)
    raise typer.Exit(code=code)


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    return Path(value) if value else None


def _run(
    task: Optional[str],
    args: List[str],
    config: Optional[Path],
    platform: Optional[str],
    dry_run: bool,
    list_only: bool,
) -> int:
    try:
        project = load_project(config)
    except TaskError as e:
        typer.echo(f"error: {e}", err=True)
        return e.exit_code

    if list_only or task is None:
        list_tasks(project)
        return 0

    try:
        host = parse_host(platform) if platform else detect_host()
    except ValueError as e:
        typer.echo(f"error: {e}", err=True)
        return 2

    executor = Executor(
        shell=project.settings.shell_for(host),
        base_dir=project.base_dir,
        args=args,
        dry_run=dry_run,
        echo=typer.echo,
    )
    invocation = Invocation(project.registry, host, executor)
    try:
        invocation.run(task)
    except TaskError as e:
        log.debug("Invocation %s", invocation.state.value)
        typer.echo(f"error: {e}", err=True)
        return e.exit_code
    return 0


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
