# devagent/cli.py
"""
DevAgent CLI entry point. Commands delegate to the DevAgent service layer.
"""
import click
from pathlib import Path

from rich.panel import Panel
from rich.text import Text

from devagent import __version__
from devagent.core.agent import DevAgent
from devagent.core.config import (
    DEFAULT_CONFIG,
    config_file_path,
    load_config,
)
from devagent.core.errors import DevAgentError, StageFailure
from devagent.core.models import CommitOutcome
from devagent.core.prompt import render_template
from devagent.utils.console import (
    console, info, success, warning, error,
    heading, show_welcome, print_table, code_block, set_verbose,
)


def _report_failure(exc: DevAgentError) -> None:
    if isinstance(exc, StageFailure):
        error(f"Stage '{exc.stage}' failed: {exc.message}")
        if exc.excerpt:
            code_block(exc.excerpt, title="Response excerpt:")
    else:
        error(str(exc))


def _load_agent(ctx, **overrides) -> DevAgent:
    """Load config for the project root and build the agent; abort on config errors."""
    root = ctx.obj['ROOT']
    try:
        config = load_config(root).with_overrides(**overrides)
    except DevAgentError as e:
        _report_failure(e)
        raise click.Abort()
    return DevAgent(config)


# ------------------------------
# CLI main entry
# ------------------------------

@click.group(invoke_without_command=True)
@click.version_option(__version__, message="DevAgent CLI v%(version)s")
@click.option("--root", "-C", type=click.Path(file_okay=False, path_type=Path), default=".",
              help="Project root (default: current directory)")
@click.option("--verbose", "-v", is_flag=True, help="Show debug diagnostics")
@click.pass_context
def cli(ctx, root: Path, verbose: bool):
    """🤖 DevAgent - turn a task description into code changes"""
    ctx.ensure_object(dict)
    ctx.obj['ROOT'] = root
    set_verbose(verbose)
    show_welcome()
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ------------------------------
# init
# ------------------------------

@cli.command()
@click.option("--force", is_flag=True, help="Overwrite existing files without asking")
@click.pass_context
def init(ctx, force: bool):
    """🔧 Create .devagent/config.yaml and a task file placeholder"""
    heading("Project Initialization")
    root: Path = ctx.obj['ROOT']
    config_file = config_file_path(root)
    task_file = root / DEFAULT_CONFIG["task_file"]

    values = dict(DEFAULT_CONFIG)
    values["project_name"] = root.resolve().name
    try:
        config_content = render_template("config", **values)
        task_content = render_template("task")
    except Exception as e:
        error(f"Template rendering failed: {e}")
        raise click.Abort()

    for path, content in ((config_file, config_content), (task_file, task_content)):
        if path.exists() and not force:
            if not click.confirm(f"{path} already exists. Overwrite?", default=False):
                info(f"Skipped: {path}")
                continue
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            error(f"Failed to write {path}: {e}")
            raise click.Abort()
        success(f"Generated: {path}")

    info("Describe your change in the task file, then run `devagent run`.")


# ------------------------------
# run
# ------------------------------

@cli.command()
@click.option("--task-file", "-t", default=None, help="Task file relative to the project root")
@click.option("--model", "-m", default=None, help="Model id to try before all others")
@click.option("--transport", type=click.Choice(["rest", "sdk"]), default=None, help="Backend transport")
@click.option("--max-files", type=int, default=None, help="Maximum number of context files")
@click.option("--no-commit", is_flag=True, help="Do not commit the applied changes")
@click.option("--dry-run", is_flag=True, help="Show the change-set without writing files")
@click.pass_context
def run(ctx, task_file, model, transport, max_files, no_commit, dry_run):
    """🚀 Generate and apply changes for the task file"""
    agent = _load_agent(
        ctx,
        task_file=task_file,
        model=model,
        transport=transport,
        max_files=max_files,
        commit_enabled=False if no_commit else None,
    )
    try:
        report = agent.run(dry_run=dry_run)
    except DevAgentError as e:
        _report_failure(e)
        raise click.Abort()

    if report.commit is CommitOutcome.COMMIT_FAILED:
        warning("Changes were applied but not committed.")
    success("✨ DevAgent finished the task!")


# ------------------------------
# apply
# ------------------------------

@cli.command()
@click.argument("response_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-commit", is_flag=True, help="Do not commit the applied changes")
@click.option("--dry-run", is_flag=True, help="Show the change-set without writing files")
@click.pass_context
def apply(ctx, response_file: Path, no_commit: bool, dry_run: bool):
    """💾 Apply a saved raw model response"""
    heading(f"Applying response from {response_file}")
    agent = _load_agent(ctx, commit_enabled=False if no_commit else None)
    try:
        raw_text = response_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        error(f"Failed to read response file '{response_file}': {e}")
        raise click.Abort()
    try:
        agent.apply_response(raw_text, dry_run=dry_run)
    except DevAgentError as e:
        _report_failure(e)
        raise click.Abort()


# ------------------------------
# models
# ------------------------------

@cli.command()
@click.option("--transport", type=click.Choice(["rest", "sdk"]), default=None, help="Backend transport")
@click.pass_context
def models(ctx, transport):
    """📋 List ranked model candidates"""
    agent = _load_agent(ctx, transport=transport)
    heading("Model Candidates")
    try:
        candidates = agent.resolve_models(agent.credential())
    except DevAgentError as e:
        _report_failure(e)
        raise click.Abort()
    print_table(
        [(c.rank, c.id, c.source) for c in candidates],
        headers=["Rank", "Model", "Source"],
        title="Models",
    )


# ------------------------------
# context
# ------------------------------

@cli.command(name="context")
@click.option("--max-files", type=int, default=None, help="Maximum number of context files")
@click.pass_context
def show_context(ctx, max_files):
    """📚 Show the files that would be sent to the model"""
    agent = _load_agent(ctx, max_files=max_files)
    heading("Project Context")
    context = agent.build_context()
    if context.files:
        print_table(
            [(f.path, len(f.content), "yes" if f.truncated else "no") for f in context.files],
            headers=["Path", "Chars", "Truncated"],
            title=f"Context ({len(context.files)}/{context.max_files})",
        )
    else:
        console.print("No context files found.", style="yellow")

    listed_only = [p for p in context.structure if not context.has_path(p)]
    if listed_only:
        code_block("\n".join(listed_only), title="Listed but not sent:")


# ------------------------------
# prompt
# ------------------------------

@cli.command()
@click.option("--task-file", "-t", default=None, help="Task file relative to the project root")
@click.option("--system/--no-system", default=False, help="Also show the system instructions")
@click.pass_context
def prompt(ctx, task_file, system: bool):
    """🧾 Preview the prompt for the current task"""
    agent = _load_agent(ctx, task_file=task_file)
    heading("Prompt Preview")
    try:
        task = agent.read_task()
    except DevAgentError as e:
        _report_failure(e)
        raise click.Abort()
    system_text, user_text = agent.assemble_prompt(task, agent.build_context())
    if system:
        console.print(Panel(Text(system_text), title="System instructions", border_style="blue"))
    console.print(Panel(Text(user_text), title="User payload", border_style="green"))


if __name__ == "__main__":
    cli()
