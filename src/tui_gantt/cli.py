"""CLI entry point using Click."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from tui_gantt.errors import GanttError

EXPORT_FORMATS = {".svg": "svg", ".json": "json", ".mmd": "mermaid", ".mermaid": "mermaid"}


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-gantt` opens tasks.yaml

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("-v", "--verbose", is_flag=True, help="Log task issues and debug output to stderr")
@click.version_option(package_name="tui-gantt")
@click.pass_context
def main(ctx, no_color: bool, verbose: bool) -> None:
    """TUI Gantt - interactive terminal Gantt chart."""
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_engine(path: Path, view: str | None = None, log_sink=None):
    from tui_gantt.config import load_options
    from tui_gantt.engine import GanttEngine
    from tui_gantt.loader import load_tasks_file

    config = load_options(path.parent)
    if view:
        config.options.view_mode = view
    return GanttEngine(load_tasks_file(path), config.options, log_sink=log_sink)


@main.command()
@click.argument("file", default="tasks.yaml", type=click.Path(dir_okay=False))
@click.pass_context
def run(ctx, file: str) -> None:
    """Open FILE (YAML, JSON or TOML task list) in the interactive chart."""
    from tui_gantt.app import GanttApp

    tasks_path = Path(file).resolve()
    if not tasks_path.exists():
        if click.confirm(f"'{tasks_path}' does not exist. Create it with sample tasks?"):
            _write_sample(tasks_path)
            click.echo(f"Created {tasks_path}")
        else:
            raise SystemExit(0)
    app = GanttApp(tasks_path=tasks_path, no_color=ctx.obj["no_color"])
    app.run()


def _write_sample(tasks_path: Path) -> None:
    from tui_gantt.app import build_sample_tasks
    from tui_gantt.engine import GanttEngine
    from tui_gantt.loader import write_tasks_file

    write_tasks_file(tasks_path, GanttEngine(build_sample_tasks()).tasks)


@main.command("render")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", "output", required=True, type=click.Path(dir_okay=False), help="Output file")
@click.option(
    "--format", "fmt",
    type=click.Choice(["svg", "json", "mermaid"]),
    default=None,
    help="Output format (default: from the output suffix, else svg)",
)
@click.option("--view", default=None, help="View mode name, e.g. Day, Week, Month")
def render_cmd(file: str, output: str, fmt: str | None, view: str | None) -> None:
    """Lay out FILE and export it as SVG, JSON or Mermaid."""
    from tui_gantt.export import export_json, export_mermaid, export_svg

    output_path = Path(output)
    fmt = fmt or EXPORT_FORMATS.get(output_path.suffix.lower(), "svg")
    try:
        engine = _load_engine(Path(file), view)
    except GanttError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    exporters = {"svg": export_svg, "json": export_json, "mermaid": export_mermaid}
    exporters[fmt](engine, output_path)
    click.echo(f"Wrote {output_path} ({fmt}, {len(engine.tasks)} task(s), view {engine.view_mode.name})")


@main.command("check")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def check_cmd(file: str) -> None:
    """Validate FILE and list task issues. Exits 1 when a task is rejected."""
    issues = []
    try:
        engine = _load_engine(Path(file), log_sink=issues.append)
    except GanttError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    for issue in issues:
        click.echo(str(issue))
    rejected = sum(1 for issue in issues if issue.level == "error")
    click.echo(f"{len(engine.tasks)} task(s) loaded, {rejected} rejected, {len(issues) - rejected} warning(s)")
    if rejected:
        raise SystemExit(1)


@main.command("init")
@click.argument("path", default=".", type=click.Path(file_okay=False))
@click.option("--name", prompt="Project name", default="My Project", help="Project name")
def init_cmd(path: str, name: str) -> None:
    """Initialize a project: .tui-gantt/config.toml and a sample tasks.yaml."""
    from tui_gantt.config import CONFIG_DIR, CONFIG_FILE, ProjectConfig, save_config

    project_dir = Path(path).resolve()
    tasks_path = project_dir / "tasks.yaml"
    if tasks_path.exists():
        click.echo(f"Task file already exists: {tasks_path}", err=True)
        raise SystemExit(1)

    project_dir.mkdir(parents=True, exist_ok=True)
    save_config(project_dir, ProjectConfig(name=name, tasks_file=tasks_path.name))
    click.echo(f"Created {project_dir / CONFIG_DIR / CONFIG_FILE}")

    _write_sample(tasks_path)
    click.echo(f"Created {tasks_path}")

    click.echo(f"\nProject initialized at {project_dir}")
    click.echo("Run 'tui-gantt tasks.yaml' to open it.")


@main.command("init-theme")
@click.argument("path", default=".", type=click.Path(file_okay=False))
def init_theme_cmd(path: str) -> None:
    """Copy the default theme to .tui-gantt/theme.yaml for customization."""
    from tui_gantt.theme import init_theme

    project_dir = Path(path).resolve()
    if not project_dir.is_dir():
        click.echo(f"Error: '{project_dir}' is not a directory.", err=True)
        raise SystemExit(1)
    try:
        dest = init_theme(project_dir)
    except FileExistsError as e:
        click.echo(f"Already exists: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Created {dest}")
