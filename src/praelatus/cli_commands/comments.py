"""CLI commands for comments."""

from __future__ import annotations

import json as json_mod

import click

from praelatus.cli_common import fail, get_store
from praelatus.cli_commands.tickets import _ticket_ref
from praelatus.errors import NotFoundError, PraelatusError
from praelatus.models import Comment


@click.command("add-comment")
@click.argument("ticket")
@click.argument("body")
@click.option("--author", required=True, help="Author username")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def add_comment(ticket: str, body: str, author: str, as_json: bool) -> None:
    """Add a comment to a ticket."""
    with get_store() as store:
        try:
            comment = store.add_comment(_ticket_ref(ticket), Comment(body=body, author=store.get_user(author)))
        except NotFoundError as e:
            fail(f"Not found: {e}", as_json=as_json)
        except PraelatusError as e:
            fail(str(e), as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps({"comment_id": comment.id, "ticket": ticket}))
        else:
            click.echo(f"Added comment {comment.id} to {ticket}")


@click.command()
@click.argument("ticket")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comments(ticket: str, as_json: bool) -> None:
    """List comments on a ticket."""
    with get_store() as store:
        try:
            found = store.get_comments(_ticket_ref(ticket))
        except PraelatusError as e:
            fail(str(e), as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps([c.to_dict() for c in found], indent=2, default=str))
            return
        if not found:
            click.echo("No comments.")
        for c in found:
            click.echo(f"[{c.created_at}] {c.author.username}: {c.body}")


COMMANDS = [add_comment, comments]
