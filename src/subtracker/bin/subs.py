"""bin/subs — Detect and manage recurring subscriptions.

Runs detection over a transaction export, merges the results into the
subscription store, and lets a human confirm, ignore or recategorize
what was found.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from subtracker.lib import insights
from subtracker.lib.detector import detect
from subtracker.lib.project import Project
from subtracker.lib.rules import CATEGORIES
from subtracker.lib.subscription import STATUSES, CandidateSubscription
from subtracker.lib.transactions import CSVProfile, Transaction, load_csv, load_json

console = Console()

CONFIDENCE_STYLES = {"high": "green", "med": "yellow", "low": "red"}


def load_transactions(project: Project, path: Path, profile: str | None) -> list[Transaction]:
    """Load a JSON/JSONL feed, or a CSV export when a profile is given."""
    if profile:
        profile_path = project.profile_path(profile)
        if not profile_path.exists():
            click.echo(f"Error: Profile not found: {profile_path}", err=True)
            raise SystemExit(1)
        return load_csv(path, CSVProfile.load(profile_path))
    if path.suffix.lower() == ".csv":
        click.echo("Error: --profile is required for CSV files", err=True)
        raise SystemExit(1)
    try:
        return load_json(path)
    except json.JSONDecodeError as e:
        click.echo(f"Error: {path.name} is not valid JSON: {e}", err=True)
        raise SystemExit(1)


def subscriptions_table(subs: list[CandidateSubscription], title: str | None = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", width=16)
    table.add_column("Name", width=28)
    table.add_column("Amount", justify="right")
    table.add_column("Cadence")
    table.add_column("Annual", justify="right")
    table.add_column("Last seen")
    table.add_column("#", justify="right")
    table.add_column("Confidence")
    table.add_column("Category")
    table.add_column("Status")

    for s in subs:
        confidence = f"[{CONFIDENCE_STYLES[s.confidence]}]{s.confidence}[/]"
        if s.needs_review:
            confidence += " ?"
        table.add_row(
            s.id,
            s.name,
            f"${s.amount:.2f}",
            s.cadence,
            f"${s.annual_cost:.2f}",
            s.last_seen_date,
            str(s.occurrence_count),
            confidence,
            s.category or "",
            s.status,
            style="dim" if s.status == "ignored" else "",
        )
    return table


def set_status(root: str | None, sub_id: str, status: str) -> None:
    with Project.discover(root).open_store() as store:
        updated = store.update(sub_id, {"status": status})
    if updated is None:
        click.echo(f"Error: No subscription with id {sub_id}", err=True)
        raise SystemExit(1)
    click.echo(f"{updated.name}: {status}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log detection details")
def main(verbose: bool) -> None:
    """subs — find and track recurring subscriptions in your transactions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("detect")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--profile", "-p", default=None, help="CSV profile name (e.g., chase)")
@click.option("--save/--no-save", default=True, help="Merge results into the store")
@click.option("--root", default=None, help="Project root directory")
def detect_cmd(file: str, profile: str | None, save: bool, root: str | None) -> None:
    """Detect subscriptions in a transaction export."""
    project = Project.discover(root)
    try:
        config = project.load_config()
    except ValueError as e:
        click.echo(f"Error: {project.config_path}: {e}", err=True)
        raise SystemExit(1)

    transactions = load_transactions(project, Path(file), profile)
    click.echo(f"Loaded {len(transactions)} transactions from {Path(file).name}")

    candidates = detect(transactions, config=config, rules=project.load_rules())
    if not candidates:
        click.echo("No recurring subscriptions found.")
        return

    console.print(subscriptions_table(candidates, title="Detected subscriptions"))

    if save:
        with project.open_store() as store:
            merged = store.upsert_many(candidates)
        click.echo(f"Merged {len(candidates)} candidate(s); store now holds {len(merged)}.")


@main.command("list")
@click.option("--status", "-s", type=click.Choice(STATUSES), default=None)
@click.option("--root", default=None, help="Project root directory")
def list_cmd(status: str | None, root: str | None) -> None:
    """List stored subscriptions."""
    with Project.discover(root).open_store() as store:
        subs = store.list(status=status)
    if not subs:
        console.print("[green]No subscriptions stored.[/green]")
        return
    console.print(subscriptions_table(subs))

    review = sum(1 for s in subs if s.status == "suggested")
    if review:
        console.print(
            f"\n[yellow]{review} suggested subscription(s).[/yellow] "
            "Run [bold]subs confirm ID[/bold] or [bold]subs ignore ID[/bold]."
        )


@main.command()
@click.argument("sub_id")
@click.option("--root", default=None, help="Project root directory")
def confirm(sub_id: str, root: str | None) -> None:
    """Mark a subscription as confirmed."""
    set_status(root, sub_id, "confirmed")


@main.command()
@click.argument("sub_id")
@click.option("--root", default=None, help="Project root directory")
def ignore(sub_id: str, root: str | None) -> None:
    """Mark a subscription as ignored."""
    set_status(root, sub_id, "ignored")


@main.command("set")
@click.argument("sub_id")
@click.option("--name", default=None, help="Display name")
@click.option("--category", "-c", default=None, help=f"Category ({', '.join(CATEGORIES)})")
@click.option("--status", "-s", type=click.Choice(STATUSES), default=None)
@click.option("--root", default=None, help="Project root directory")
def set_cmd(
    sub_id: str, name: str | None, category: str | None, status: str | None, root: str | None
) -> None:
    """Rename, recategorize or change the status of a subscription."""
    patch = {k: v for k, v in {"name": name, "category": category, "status": status}.items() if v}
    if not patch:
        click.echo("Nothing to change.", err=True)
        raise SystemExit(1)

    with Project.discover(root).open_store() as store:
        updated = store.update(sub_id, patch)
    if updated is None:
        click.echo(f"Error: No subscription with id {sub_id}", err=True)
        raise SystemExit(1)
    console.print(subscriptions_table([updated]))


@main.command()
@click.option("--root", default=None, help="Project root directory")
def clusters(root: str | None) -> None:
    """Show confirmed subscriptions grouped by category."""
    with Project.discover(root).open_store() as store:
        subs = store.list()
    summary = insights.totals(subs)
    infra = insights.infrastructure_map(subs)

    if not infra.clusters:
        console.print("[yellow]No confirmed subscriptions yet.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Category", width=14)
    table.add_column("Count", justify="right")
    table.add_column("Annual", justify="right")
    table.add_column("Merchants")
    for c in infra.clusters:
        table.add_row(
            c.category,
            str(c.count),
            f"${c.total_annual:.2f}",
            ", ".join(m.name for m in c.merchants),
        )
    console.print(table)
    console.print(
        f"\n[bold]Total:[/bold] ${summary.annual:.2f}/yr (${summary.monthly:.2f}/mo)"
    )


@main.command()
@click.option("--months", "-m", default=6, help="Months to show (3-24)")
@click.option("--root", default=None, help="Project root directory")
def cashflow(months: int, root: str | None) -> None:
    """Show projected monthly subscription spend."""
    with Project.discover(root).open_store() as store:
        subs = store.list()
    points = insights.cashflow_timeline(subs, months=months)

    peak = max((p.total for p in points), default=0.0)
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Month", width=10)
    table.add_column("Total", justify="right")
    table.add_column("", width=30)
    for p in points:
        bar = "█" * int(round(30 * p.total / peak)) if peak else ""
        table.add_row(f"{p.label} {p.year}", f"${p.total:.2f}", bar)
    console.print(table)


@main.command("add-rule")
@click.argument("pattern")
@click.option("--name", default=None, help="Canonical merchant name")
@click.option("--category", "-c", default=None, help="Category to assign")
@click.option("--ignore", "ignore_flag", is_flag=True, help="Always ignore matching merchants")
@click.option("--root", default=None, help="Project root directory")
def add_rule(
    pattern: str, name: str | None, category: str | None, ignore_flag: bool, root: str | None
) -> None:
    """Add a merchant rule (applies on the next detect)."""
    project = Project.discover(root)
    rules = project.load_rules()
    try:
        rule = rules.add_rule(pattern, rename=name, category=category, ignore=ignore_flag)
    except re.error as e:
        click.echo(f"Error: Invalid rule {pattern!r}: {e}", err=True)
        raise SystemExit(1)
    rules.save()
    click.echo(f"Added rule {rule.id} to {project.rules_path}")


if __name__ == "__main__":
    main()
