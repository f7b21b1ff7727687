"""CLI commands for tickets: create, show, list, next-key, delete."""

from __future__ import annotations

import json as json_mod

import click

from praelatus.cli_common import current_project_key, fail, get_store, parse_field_value
from praelatus.errors import NotFoundError, PraelatusError
from praelatus.models import FieldOption, FieldValue, Ticket


def _ticket_ref(value: str) -> int | str:
    return int(value) if value.isdigit() else value


@click.command()
@click.argument("summary")
@click.option("--assignee", required=True, help="Assignee username")
@click.option("--reporter", required=True, help="Reporter username")
@click.option("--status", "status_name", required=True, help="Status name")
@click.option("--type", "type_name", required=True, help="Ticket type name")
@click.option("--key", default=None, help="Ticket key (default: next key for the project)")
@click.option("--description", "-d", default="", help="Description")
@click.option("--field", "-f", multiple=True, help="Custom field as name=value (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(
    summary: str,
    assignee: str,
    reporter: str,
    status_name: str,
    type_name: str,
    key: str | None,
    description: str,
    field: tuple[str, ...],
    as_json: bool,
) -> None:
    """Create a ticket in this project."""
    project_key = current_project_key()
    with get_store() as store:
        try:
            values: list[FieldValue] = []
            for f in field:
                if "=" not in f:
                    fail(f"Invalid field format: {f} (expected name=value)", as_json=as_json)
                name, raw = f.split("=", 1)
                values.append(parse_field_value(store.get_field_by_name(name), raw))
            ticket = Ticket(
                summary=summary,
                description=description,
                key=key or store.next_key(project_key),
                assignee=store.get_user(assignee),
                reporter=store.get_user(reporter),
                status=store.get_status(status_name),
                type=store.get_ticket_type(type_name),
                fields=values,
            )
            store.create_ticket(project_key, ticket)
        except PraelatusError as e:
            fail(str(e), as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps(ticket.to_dict(), indent=2, default=str))
        else:
            click.echo(f"Created {ticket.key}: {ticket.summary}")


@click.command()
@click.argument("ticket")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(ticket: str, as_json: bool) -> None:
    """Show a ticket by key or id."""
    with get_store() as store:
        try:
            t = store.get_ticket(_ticket_ref(ticket))
        except NotFoundError:
            fail(f"Not found: {ticket}", as_json=as_json)
        except PraelatusError as e:
            fail(str(e), as_json=as_json)

        if as_json:
            click.echo(json_mod.dumps(t.to_dict(), indent=2, default=str))
            return

        click.echo(f"Key:      {t.key} (id={t.id})")
        click.echo(f"Summary:  {t.summary}")
        click.echo(f"Status:   {t.status.name}")
        click.echo(f"Type:     {t.type.name}")
        click.echo(f"Assignee: {t.assignee.username}")
        click.echo(f"Reporter: {t.reporter.username}")
        click.echo(f"Created:  {t.created_at}")
        click.echo(f"Updated:  {t.updated_at}")
        if t.description:
            click.echo(f"\n{t.description}")
        if t.fields:
            click.echo("\nFields:")
            for fv in t.fields:
                shown = fv.value.selected if isinstance(fv.value, FieldOption) else fv.to_dict()["value"]
                click.echo(f"  {fv.name}: {shown}")


@click.command("list")
@click.option("--all", "all_projects", is_flag=True, help="List tickets of every project")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_tickets(all_projects: bool, as_json: bool) -> None:
    """List tickets."""
    with get_store() as store:
        try:
            found = store.get_all_tickets() if all_projects else store.get_tickets_by_project(current_project_key())
        except PraelatusError as e:
            fail(str(e), as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps([t.to_dict() for t in found], indent=2, default=str))
            return
        for t in found:
            click.echo(f"{t.key:<12} [{t.status.name}] {t.summary} ({t.assignee.username})")
        if not found:
            click.echo("No tickets.")


@click.command("next-key")
def next_key() -> None:
    """Print the key the next ticket would get."""
    with get_store() as store:
        try:
            click.echo(store.next_key(current_project_key()))
        except PraelatusError as e:
            fail(str(e))


@click.command()
@click.argument("ticket")
def delete(ticket: str) -> None:
    """Remove a ticket with its field values and labels."""
    with get_store() as store:
        try:
            store.remove_ticket(_ticket_ref(ticket))
        except NotFoundError:
            fail(f"Not found: {ticket}")
        except PraelatusError as e:
            fail(str(e))
        click.echo(f"Removed {ticket}")


COMMANDS = [create, show, list_tickets, next_key, delete]
