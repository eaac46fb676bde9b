"""tiercascade CLI: Typer + Rich terminal interface.

Commands: ask, tiers, config, serve.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tiercascade import __version__
from tiercascade.keys import get_configured_keys, load_keys_env
from tiercascade.providers.litellm_provider import LiteLLMInvoker
from tiercascade.providers.registry import load_cascade_config, load_tier_map
from tiercascade.routing.engine import CascadeController
from tiercascade.routing.errors import CascadeExhaustedError
from tiercascade.schemas.cascade import AttemptRecord, CascadeStrategy
from tiercascade.schemas.tiers import TierConfigError

# Load API keys from ~/.tiercascade/keys.env and .env on startup
load_keys_env()

console = Console()

app = typer.Typer(
    name="tiercascade",
    help="Route a task across tiered AI backends, escalating on deferral.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_OUTCOME_STYLE = {
    "completed": "bold green",
    "deferred": "bold yellow",
    "failed": "bold red",
}


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tiercascade {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log every tier attempt.",
    ),
) -> None:
    """tiercascade: tiered AI routing with escalation."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Helpers ──────────────────────────────────────────────────────


def _load_controller(
    strategy: CascadeStrategy | None = None,
) -> CascadeController:
    """Resolve config and tier map, exit on configuration errors."""
    try:
        config = load_cascade_config()
        tier_map = load_tier_map(tier_count=config.tier_count)
    except (FileNotFoundError, TierConfigError) as e:
        console.print(f"[red]Error loading tier config:[/red] {e}")
        raise typer.Exit(1) from None

    if strategy is not None:
        config = config.model_copy(update={"strategy": strategy})
    return CascadeController(tier_map, LiteLLMInvoker(tier_map, config), config)


def _attempts_table(attempts: list[AttemptRecord]) -> Table:
    table = Table(title="Escalation Path", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Tier", justify="right", style="bold cyan")
    table.add_column("Backend")
    table.add_column("Outcome")
    table.add_column("Reason", style="dim")
    table.add_column("Latency", justify="right")

    for i, attempt in enumerate(attempts, 1):
        style = _OUTCOME_STYLE.get(attempt.outcome_kind.value, "")
        reason = attempt.reason
        if attempt.cooldown_s:
            reason = f"{reason} (cooldown {attempt.cooldown_s:.1f}s)"
        table.add_row(
            str(i),
            str(attempt.tier),
            f"{attempt.provider}:{attempt.model}",
            f"[{style}]{attempt.outcome_kind.value}[/{style}]",
            reason,
            f"{attempt.latency_ms}ms",
        )
    return table


# ── tiercascade ask ──────────────────────────────────────────────


@app.command()
def ask(
    prompt: str = typer.Argument(..., help="Task to send through the cascade"),
    tier: int = typer.Option(1, "--tier", "-t", help="Requested tier (clamped into range)"),
    strategy: CascadeStrategy = typer.Option(
        None, "--strategy", "-s", help="Transition policy (default from config)",
    ),
    max_attempts: int = typer.Option(
        None, "--max-attempts", min=1, help="Cap invocations for this task",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run one task through the tier cascade."""
    controller = _load_controller(strategy)

    async def _run():
        return await controller.run(tier, prompt, max_attempts=max_attempts)

    try:
        with console.status("[bold blue]Cascading...", spinner="dots"):
            result = asyncio.run(_run())
    except CascadeExhaustedError as e:
        if as_json:
            console.print_json(json.dumps({
                "state": "error",
                "content": "All tiers failed",
                "attempts": [a.model_dump(mode="json") for a in e.attempts],
            }))
        else:
            console.print(_attempts_table(e.attempts))
            console.print(f"[red]All tiers failed:[/red] {e}")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(result.model_dump_json())
        return

    package = result.package
    body = package if isinstance(package, str) else json.dumps(package, indent=2)
    console.print(_attempts_table(result.attempts))
    console.print(Panel(
        body,
        title=f"Tier {result.tier} ({result.attempts[-1].provider})",
        border_style="green",
    ))


# ── tiercascade tiers ────────────────────────────────────────────


@app.command()
def tiers() -> None:
    """Show the resolved tier map."""
    controller = _load_controller()
    keys = get_configured_keys()

    table = Table(title="Tier Map", show_lines=True)
    table.add_column("Tier", justify="right", style="bold cyan")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Timeout", justify="right")
    table.add_column("Key")

    for number, backend in controller.tier_map.entries():
        overridden = f"TIER_{number}" in os.environ
        has_key = keys.get(backend.provider, False)
        table.add_row(
            str(number) + (" *" if overridden else ""),
            backend.provider,
            backend.model,
            f"{controller.config.timeout_for(number):.0f}s",
            "[green]set[/green]" if has_key else "[red]not set[/red]",
        )

    console.print(table)
    console.print("\n[dim]* overridden by TIER_<n> environment variable[/dim]")


# ── tiercascade config ───────────────────────────────────────────


@app.command("config")
def config_show() -> None:
    """Show the cascade configuration."""
    try:
        config = load_cascade_config()
    except (FileNotFoundError, TierConfigError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None

    table = Table(title="Cascade Configuration", show_header=False, show_lines=True)
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Tiers", str(config.tier_count))
    table.add_row("Strategy", config.strategy.value)
    table.add_row(
        "Max Attempts",
        str(config.max_attempts) if config.max_attempts is not None else "unlimited",
    )
    table.add_row("Base Timeout", f"{config.base_timeout:.1f}s")
    table.add_row("Timeout Step", f"{config.timeout_step:.1f}s per tier")
    table.add_row("Rate-Limit Cooldown", f"{config.rate_limit_cooldown:.1f}s")
    table.add_row("Max Cooldown", f"{config.max_cooldown:.1f}s")

    console.print(table)


# ── tiercascade serve ────────────────────────────────────────────


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind to"),
    port: int = typer.Option(
        None, "--port", "-p", help="Port to listen on (default: $PORT or 10000)",
    ),
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from tiercascade.api.main import create_app

    port = port or int(os.environ.get("PORT", "10000"))
    controller = _load_controller()

    console.print(f"[bold green]tiercascade[/bold green] listening on http://{host}:{port}")
    uvicorn.run(create_app(controller), host=host, port=port, log_level="info")
