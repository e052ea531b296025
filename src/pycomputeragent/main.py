from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .app_context import AppContext, load_system_prompt
from .errors import AgentError
from .events.store import EventStore
from .output.handlers import JsonOutputHandler, OutputHandler, create_output_handler
from .session.models import Turn

app = typer.Typer(add_completion=False, help="pycomputeragent: tool-using assistant for files, shell and web.")
console = Console()
err_console = Console(stderr=True)


def _default_cwd() -> Path:
    return Path.cwd()


def _resolve_cwd(cwd: Path | None) -> Path:
    cwd = cwd or _default_cwd()
    cwd = Path(str(cwd)).expanduser()
    if not cwd.is_absolute():
        cwd = (Path.cwd() / cwd).resolve()
    else:
        cwd = cwd.resolve()
    if cwd.exists() and not cwd.is_dir():
        raise typer.BadParameter(f"--cwd must be a directory, got file: {cwd}")
    if not cwd.exists():
        cwd.mkdir(parents=True, exist_ok=True)
    return cwd


def _debug_from_env() -> bool:
    return (os.getenv("DEBUG") or "").strip().lower() in {"1", "true", "yes"}


def _print_banner(ctx: AppContext) -> None:
    table = Table.grid(padding=(0, 2))
    table.add_row("📁 [bold green]cwd[/bold green]", f"[bright_cyan]{ctx.cwd}[/bright_cyan]")
    table.add_row("🔌 [bold green]provider[/bold green]", f"[bright_cyan]{ctx.provider.name}[/bright_cyan]")
    table.add_row("🧠 [bold green]model[/bold green]", f"[bright_cyan]{ctx.provider.model}[/bright_cyan]")
    table.add_row("🛠️ [bold green]tools[/bold green]", f"[bright_cyan]{', '.join(ctx.tools.names())}[/bright_cyan]")
    table.add_row("⚙️ [bold green]behavior_config[/bold green]", f"[bright_cyan]{ctx.behavior.loaded_from or '(none)'}[/bright_cyan]")
    if ctx.events:
        table.add_row("🧾 [bold green]run[/bold green]", f"[bright_cyan]{ctx.events.run_id}[/bright_cyan]")

    console.print(
        Align.center(
            Panel(
                table,
                title="[bold magenta]pycomputeragent[/bold magenta]",
                border_style="bright_blue",
            )
        )
    )


async def _run_message(
    ctx: AppContext,
    system_prompt: str,
    transcript: list[Turn],
    message: str,
    output: OutputHandler,
) -> list[Turn]:
    turn = Turn.user_text(message)
    appended = await ctx.orchestrator().run(system_prompt, [*transcript, turn], output)
    return [turn, *appended]


def _chat(
    ctx: AppContext,
    message: Optional[str],
    fmt: str,
    verbose: bool,
    debug: bool,
) -> None:
    system_prompt, context_len = load_system_prompt(ctx.cwd, ctx.behavior.context_file)
    output = create_output_handler(fmt, verbose, ctx.provider.model, debug)
    output.show_debug(f"Loaded context file {ctx.behavior.context_file} ({context_len} chars)")

    if message is not None:
        turns = asyncio.run(_run_message(ctx, system_prompt, [], message, output))
        if isinstance(output, JsonOutputHandler):
            output.add_turns(turns)
            output.output()
        return

    # input is read between turns, outside the event loop
    transcript: list[Turn] = []
    while True:
        try:
            user = typer.prompt("You")
        except (EOFError, KeyboardInterrupt, typer.Abort):
            console.print("\nGoodbye!")
            break
        if not user.strip():
            continue
        if user.strip().lower() in {"exit", "quit"}:
            console.print("Goodbye!")
            break
        transcript.extend(asyncio.run(_run_message(ctx, system_prompt, transcript, user, output)))
        console.print()


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Starts an interactive chat when no command is given."""
    if ctx.invoked_subcommand is None:
        chat(
            message=None,
            fmt="text",
            verbose=False,
            quiet=False,
            debug=False,
            provider=None,
            config=Path("pycomputeragent.yaml"),
            behavior_config=None,
            model=None,
            max_depth=None,
            cwd=None,
            no_events=False,
        )


@app.command()
def chat(
    message: str = typer.Option(None, "--message", "-m", help="Send one message and exit."),
    fmt: str = typer.Option("text", "--format", help="Output format for -m: text or json."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show thinking spinner and tool notifications."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print assistant messages and errors."),
    debug: bool = typer.Option(False, "--debug", "-d", help="Print debug diagnostics to stderr (also DEBUG=true)."),
    provider: str = typer.Option(None, "--provider", help="Provider name registered in YAML. Defaults to environment settings."),
    config: Path = typer.Option(Path("pycomputeragent.yaml"), "--config", help="YAML provider config path (default: ./pycomputeragent.yaml)."),
    behavior_config: Path = typer.Option(None, "--behavior-config", help="Optional behavior JSON (pycomputeragent.json) path."),
    model: str = typer.Option(None, "--model", help="Override the model name."),
    max_depth: int = typer.Option(None, "--max-depth", help="Max service calls per message."),
    cwd: Path = typer.Option(None, "--cwd", help="Working directory. Defaults to current directory."),
    no_events: bool = typer.Option(False, "--no-events", help="Do not record telemetry events."),
):
    """Chat with the assistant, one-shot with -m or interactively."""
    if fmt not in {"text", "json"}:
        raise typer.BadParameter("--format must be 'text' or 'json'")
    if fmt == "json" and message is None:
        raise typer.BadParameter("--format json applies to one-shot mode only; pass -m/--message")
    debug = debug or _debug_from_env()
    verbose = verbose and not quiet

    try:
        cwd = _resolve_cwd(cwd)
        ctx = AppContext.from_env(
            cwd=cwd,
            provider=provider,
            model=model,
            config_path=config,
            behavior_config=behavior_config,
            max_depth=max_depth,
            debug=debug,
            record_events=not no_events,
        )
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)

    if message is None:
        _print_banner(ctx)

    try:
        _chat(ctx, message, fmt, verbose, debug)
    except AgentError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}", markup=True, highlight=False)
        raise typer.Exit(code=1)


@app.command()
def events(
    run: str = typer.Option(..., "--run", help="Run id to inspect events."),
    tail: int = typer.Option(200, "--tail", help="Show last N events."),
):
    """Show recorded structured events (service calls, tool results) for a run."""
    es = EventStore.open(run)
    evs = list(es.iter_events())
    evs = evs[-tail:] if tail and tail > 0 else evs
    console.print(Panel.fit(f"run: {run}\nfile: {es.path}\nevents: {len(evs)}", title="Events"))
    for e in evs:
        ts = datetime.fromtimestamp(e.ts).strftime("%Y-%m-%d %H:%M:%S")
        console.print(Panel.fit(json.dumps(e.data, ensure_ascii=False, indent=2)[:4000], title=f"{ts}  {e.type}"))


if __name__ == "__main__":
    app()
