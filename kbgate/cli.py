"""CLI entry point for kbgate."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kbgate.audit import SQLiteAuditStore
from kbgate.config import GatewayConfig, load_config
from kbgate.config.loader import DEFAULT_CONFIG_TEMPLATE
from kbgate.constitution import ConstitutionSource
from kbgate.gateway import create_constitution
from kbgate.log_setup import setup_logging
from kbgate.permission import PermissionEngine
from kbgate.rules import RuleValidator

app = typer.Typer(
    name="kbgate",
    help="Policy-gated request gateway for the knowledge base.",
)

config_app = typer.Typer(help="Manage kbgate configuration.")
app.add_typer(config_app, name="config")

audit_app = typer.Typer(help="Inspect the audit trail.")
app.add_typer(audit_app, name="audit")

# Global state
_config: GatewayConfig | None = None


def _get_config() -> GatewayConfig:
    if _config is None:
        return load_config()
    return _config


def _load_constitution(cfg: GatewayConfig) -> ConstitutionSource:
    try:
        return create_constitution(cfg)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to kbgate.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


# ---------------------------------------------------------------------------
# Policy commands
# ---------------------------------------------------------------------------


@app.command()
def check(
    actor: str = typer.Argument(..., help="Role id of the caller"),
    action: str = typer.Argument(..., help="Action, e.g. create:candidates"),
    resource: str = typer.Argument(..., help="Resource path, e.g. /candidates/1"),
) -> None:
    """Evaluate a permission check without executing anything."""
    engine = PermissionEngine(_load_constitution(_get_config()))
    decision = engine.check(actor, action, resource)
    if decision.allowed:
        rprint(f"[green]ALLOW[/green] {actor} {action} {resource}")
    else:
        rprint(f"[red]DENY[/red] {actor} {action} {resource}")
    rprint(f"[dim]Reason:[/dim] {decision.reason}")
    if not decision.allowed:
        raise typer.Exit(1)


@app.command()
def validate(
    actor: str = typer.Argument(..., help="Role id of the caller"),
    action: str = typer.Argument(..., help="Action name"),
    resource: str = typer.Argument(..., help="Resource path"),
    data: str = typer.Option("{}", "--data", "-d", help="Request payload as JSON"),
) -> None:
    """Run constitution rules against a request."""
    cfg = _get_config()
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        rprint(f"[red]Error:[/red] --data is not valid JSON: {escape(str(e))}")
        raise typer.Exit(1)
    if not isinstance(payload, dict):
        rprint("[red]Error:[/red] --data must be a JSON object")
        raise typer.Exit(1)

    validator = RuleValidator(_load_constitution(cfg), cfg.rules)
    result = validator.validate(
        {"actor": actor, "action": action, "resource": resource, "data": payload}
    )
    if result.compliant:
        rprint("[green]Compliant:[/green] no violations.")
        return

    table = Table(title=f"Violations ({len(result.violations)})")
    table.add_column("Priority", justify="right")
    table.add_column("Rule", style="cyan")
    table.add_column("Description")
    table.add_column("Suggestion", style="yellow")
    for v in result.violations:
        table.add_row(str(v.priority), v.rule_id, v.description, v.suggestion)
    rprint(table)
    raise typer.Exit(1)


@app.command()
def roles() -> None:
    """List roles defined by the constitution."""
    source = _load_constitution(_get_config())
    origin = str(source.path) if source.path else "built-in"
    rprint(
        Panel(
            f"[bold]Version[/bold] {source.version}\n[dim]Source:[/dim] {origin}",
            title="Constitution",
            border_style="blue",
        )
    )

    table = Table(title=f"Roles ({len(source.all_roles())})")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Permissions", style="green")
    table.add_column("Constraints", style="yellow")
    for role in source.all_roles():
        table.add_row(
            role.id,
            role.name,
            "\n".join(role.permissions) or "-",
            "\n".join(role.constraints) or "-",
        )
    rprint(table)


# ---------------------------------------------------------------------------
# Audit commands
# ---------------------------------------------------------------------------


def _open_store(db_path: str | None) -> SQLiteAuditStore:
    path = db_path or _get_config().audit.db_path
    if path != ":memory:" and not Path(path).exists():
        rprint(f"[red]Error:[/red] audit database not found: {path}")
        raise typer.Exit(1)
    return SQLiteAuditStore(db_path=path)


@audit_app.command("list")
def audit_list(
    actor: str | None = typer.Option(None, "--actor", help="Filter by actor"),
    action: str | None = typer.Option(None, "--action", help="Filter by action"),
    result: str | None = typer.Option(None, "--result", help="success | failure"),
    limit: int = typer.Option(20, "--limit", help="Maximum rows to show"),
    db_path: str | None = typer.Option(None, "--db-path", help="Path to audit database"),
) -> None:
    """Show the most recent audit entries."""
    if result is not None and result not in ("success", "failure"):
        rprint(f"[red]Error:[/red] --result must be success or failure, got {result!r}")
        raise typer.Exit(1)

    store = _open_store(db_path)
    try:
        entries = store.query(actor=actor, action=action, result=result, limit=limit)
    finally:
        store.close()

    table = Table(title=f"Audit entries ({len(entries)})")
    table.add_column("Request", style="dim")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Resource")
    table.add_column("Result")
    table.add_column("ms", justify="right")
    table.add_column("Error", style="red")
    for e in entries:
        colour = "green" if e.result.value == "success" else "red"
        table.add_row(
            e.id[:8],
            e.actor,
            e.action,
            e.resource or "-",
            f"[{colour}]{e.result.value}[/{colour}]",
            str(e.duration_ms) if e.duration_ms is not None else "-",
            escape(e.error_message or ""),
        )
    rprint(table)


@audit_app.command("stats")
def audit_stats(
    window: str = typer.Option("24h", "--window", help="Time window: 24h, 7d, 30d, <n>h, <n>d"),
    db_path: str | None = typer.Option(None, "--db-path", help="Path to audit database"),
) -> None:
    """Aggregate audit statistics over a time window."""
    store = _open_store(db_path)
    try:
        stats = store.stats(window)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        store.close()

    avg = f"{stats.avg_duration_ms:.0f}ms" if stats.avg_duration_ms is not None else "N/A"
    rprint(
        Panel(
            f"[bold]Total[/bold]    {stats.total}\n"
            f"[green]Success[/green]  {stats.success}\n"
            f"[red]Failure[/red]  {stats.failure}\n"
            f"[dim]Rate:[/dim]     {stats.success_rate:.2f}%\n"
            f"[dim]Avg:[/dim]      {avg}",
            title=f"Audit stats ({stats.window})",
            border_style="blue",
        )
    )

    for title, counts in (("By actor", stats.by_actor), ("By action", stats.by_action)):
        if not counts:
            continue
        table = Table(title=title)
        table.add_column("name", style="cyan")
        table.add_column("count", justify="right", style="green")
        for name, count in counts.items():
            table.add_row(name, str(count))
        rprint(table)


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default kbgate.yaml in current directory."""
    target = Path("kbgate.yaml")
    if target.exists() and not force:
        rprint("[yellow]kbgate.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
