"""chatguard CLI.

Operator commands for the chat gate: run the API server, read health and the
war-room dashboard from a running instance, run the evaluation harness against
the configured provider, and exercise the safety gate locally.
"""

import asyncio
import json
import os
import uuid

import httpx
import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from chatguard.config.settings import settings
from chatguard.core.logger import setup_logger
from chatguard.engine import ChatGuardEngine
from chatguard.persistence.session_store import NullSessionStore
from chatguard.security.sanitizer import blocked_category, sanitize_input

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="chatguard",
    help="chatguard - admission control, safety gate and telemetry for the portfolio chat",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
DEFAULT_URL = os.getenv("CHATGUARD_URL", "http://127.0.0.1:8000")
REQUEST_TIMEOUT_SECONDS = 10.0


def _fetch_json(url: str) -> tuple[int, dict]:
    try:
        response = httpx.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
    except httpx.HTTPError as e:
        console.print(f"[red]Error:[/red] could not reach {url}: {e}", style="bold red")
        raise typer.Exit(1) from e
    return response.status_code, response.json()


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the API server."""
    console.print(f"[green]Starting chatguard on {host}:{port}[/green]")
    uvicorn.run("chatguard.main:create_app", factory=True, host=host, port=port, reload=reload)


@app.command()
def health(url: str = typer.Option(DEFAULT_URL, "--url", help="Base URL of a running instance")) -> None:
    """Print the health view of a running instance."""
    status_code, body = _fetch_json(f"{url.rstrip('/')}/api/health")
    color = {"healthy": "green", "degraded": "yellow"}.get(body.get("status", ""), "red")
    console.print(Panel(JSON(json.dumps(body)), title=f"[{color}]{body.get('status', 'unknown')}[/{color}]"))
    if status_code >= 500:
        raise typer.Exit(1)


@app.command()
def dashboard(url: str = typer.Option(DEFAULT_URL, "--url", help="Base URL of a running instance")) -> None:
    """Print request and chat metrics from the war-room endpoint."""
    _, body = _fetch_json(f"{url.rstrip('/')}/api/war-room/data")

    table = Table(title="War room")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for section in ("request_metrics", "chat_metrics"):
        for name, value in body.get(section, {}).items():
            table.add_row(name, str(value))
    infrastructure = body.get("infrastructure", {})
    table.add_row("uptime_seconds", str(infrastructure.get("uptime_seconds", 0)))
    console.print(table)

    for error in body.get("recent_errors", [])[:5]:
        console.print(f"[red]{error['timestamp']}[/red] {error['endpoint']} {error['status_code']} {error['message']}")


@app.command("eval")
def run_eval(
    case_ids: list[str] = typer.Option(None, "--case", "-c", help="Case id to run (repeatable)"),
    max_cases: int = typer.Option(8, "--max-cases", help="Maximum number of cases"),
    show_responses: bool = typer.Option(False, "--show-responses", help="Print model replies"),
) -> None:
    """Run the evaluation harness against the configured provider."""
    setup_logger(level="WARNING")
    engine = ChatGuardEngine.from_settings(settings, session_store=NullSessionStore())

    ready, reason = engine.provider_ready()
    if not ready:
        console.print(f"[red]Error:[/red] {reason}", style="bold red")
        raise typer.Exit(1)

    run = asyncio.run(engine.eval_runner().run(case_ids or None, max_cases, privileged=True))

    table = Table(title="Chat eval")
    table.add_column("Case")
    table.add_column("Category")
    table.add_column("Result")
    table.add_column("Latency (ms)", justify="right")
    table.add_column("Failed checks")
    for result in run.results:
        failed = ", ".join(check.name for check in result.checks if not check.passed)
        table.add_row(
            result.id,
            result.category,
            "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]",
            str(result.latency_ms),
            failed,
        )
    console.print(table)

    if show_responses:
        for result in run.results:
            console.print(Panel(result.response, title=result.id))

    summary = run.summary
    console.print(f"{summary.passed}/{summary.total} passed ({summary.pass_rate}%), avg {summary.avg_latency_ms} ms")
    if not summary.all_passed:
        raise typer.Exit(1)


@app.command()
def check(text: str = typer.Argument(..., help="Message to run through the safety gate")) -> None:
    """Run one message through the input safety gate."""
    result = sanitize_input(text)
    if result.safe:
        console.print("[green]safe[/green]")
        console.print(result.sanitized)
        return

    category = blocked_category(text)
    console.print(f"[red]rejected[/red] ({category or 'input'})")
    console.print(result.reason)
    raise typer.Exit(1)


@app.command()
def chat(source: str = typer.Option("cli", "--source", help="Rate-limit key for this session")) -> None:
    """Interactive chat through the full gate (in-process)."""
    setup_logger(level="WARNING")
    engine = ChatGuardEngine.from_settings(settings)
    counter = engine.admission.new_session_counter()
    session_id = str(uuid.uuid4())
    messages: list[dict[str, str]] = []

    console.print("[dim]Type a question, or an empty line to quit.[/dim]")
    while not counter.is_limit_reached():
        question = console.input("[bold cyan]you>[/bold cyan] ").strip()
        if not question:
            break

        messages.append({"role": "user", "content": question})
        outcome = asyncio.run(engine.chat(messages[-8:], source_key=source, session_id=session_id))
        if not outcome.ok:
            messages.pop()
            console.print(f"[red]{outcome.error}[/red]")
            continue

        counter.increment()
        messages.append({"role": "assistant", "content": outcome.response or ""})
        marker = " [dim](cached)[/dim]" if outcome.cached else ""
        console.print(f"[bold green]assistant>[/bold green] {outcome.response}{marker}")
    else:
        console.print(f"[yellow]Session limit of {counter.cap} messages reached.[/yellow]")

    logger.debug(f"CLI chat session {session_id} ended")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
