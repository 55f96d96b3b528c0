"""CLI interface for chatdigest."""

from __future__ import annotations

import json
import logging
import shutil
import sys

import click

from . import __version__
from .config import DATA_DIR, SQLITE_PATH
from .errors import ChatDigestError, InvalidRangeError
from .ranges import describe_range, parse_range


class RangeParamType(click.ParamType):
    """Click parameter for ``2h`` / ``30m`` / ``50`` style ranges."""

    name = "range"

    def convert(self, value, param, ctx):
        if not isinstance(value, str):
            return value
        try:
            return parse_range(value)
        except InvalidRangeError as e:
            self.fail(str(e), param, ctx)


RANGE = RangeParamType()


def _require_data():
    if not SQLITE_PATH.exists():
        raise click.ClickException(
            "No data found. Import a Telegram export first:\n"
            "  chatdigest import ~/Downloads/ChatExport/result.json"
        )


@click.group()
@click.version_option(version=__version__, prog_name="chatdigest")
@click.option("-v", "--verbose", count=True, help="Log engine decisions (-vv for debug).")
def cli(verbose: int):
    """chatdigest — Catch up on long group chats in a few lines.

    Import a Telegram Desktop export, then summarize any time window or
    number of recent messages, from the shell or as an MCP server.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            stream=sys.stderr,
        )


@cli.command("import")
@click.argument("export_path", type=click.Path(exists=True))
@click.option("--force", is_flag=True, help="Re-import chats that already exist")
def import_cmd(export_path: str, force: bool):
    """Import a Telegram Desktop chat export (result.json or a ZIP of it).

    In Telegram Desktop: chat menu → Export chat history → Format: JSON.

    Example:
        chatdigest import ~/Downloads/ChatExport_2024-01-15/result.json
    """
    from .importer import import_telegram_export

    import_telegram_export(export_path, force=force, db_path=SQLITE_PATH)


@cli.command()
@click.argument("chat_id", type=int)
@click.argument("message_range", metavar="[RANGE]", type=RANGE, required=False)
@click.option("--provider", type=click.Choice(["openai", "bedrock"]), default=None, help="LLM provider (default: CHATDIGEST_PROVIDER or openai)")
@click.option("--model", default=None, help="Model name or Bedrock model id")
@click.option("--max-context-tokens", type=int, default=None, help="Override the model's context size")
@click.option("--dry-run", is_flag=True, help="Show how the request would be split, without calling the model")
def summarize(chat_id: int, message_range, provider: str | None, model: str | None, max_context_tokens: int | None, dry_run: bool):
    """Summarize a chat.

    RANGE is a time window ('2h', '30m') or a message count ('50').
    Defaults to the last 24 hours.

    Example:
        chatdigest summarize 42 50

    Group chat ids are negative; put them after "--":

        chatdigest summarize -- -1001234567890 2h
    """
    _require_data()

    from .engine import SummaryEngine
    from .llm import create_backend
    from .storage import MessageStore

    if message_range is None:
        message_range = parse_range(None)

    backend_kwargs = {}
    if model:
        backend_kwargs["model"] = model
    if max_context_tokens is not None:
        backend_kwargs["max_context_tokens"] = max_context_tokens

    store = MessageStore(SQLITE_PATH)
    try:
        engine = SummaryEngine(store, create_backend(provider, **backend_kwargs))
        if dry_run:
            plan = engine.plan(chat_id, message_range)
            click.echo(f"Range:      {describe_range(message_range)}")
            click.echo(f"Messages:   {plan.message_count:,}")
            click.echo(f"Tokens:     ~{plan.estimated_tokens:,} (budget {plan.usable_budget:,})")
            click.echo(f"Strategy:   {plan.strategy} ({plan.chunk_count} chunks)")
            return

        summary = engine.generate_summary(chat_id, message_range)
    except ChatDigestError as e:
        raise click.ClickException(str(e)) from e
    finally:
        store.close()

    click.echo(summary)


@cli.command()
@click.option("--limit", default=20, show_default=True, help="Maximum chats to list")
def chats(limit: int):
    """List imported chats, most recently active first."""
    _require_data()

    from .storage import MessageStore

    store = MessageStore(SQLITE_PATH)
    rows = store.list_chats(limit=limit)
    store.close()

    if not rows:
        click.echo("No chats imported yet.")
        return

    for c in rows:
        click.echo(
            f"{c['id']:>16}  {c['title']}  "
            + click.style(f"({c['message_count']:,} msgs)", dim=True)
        )


@cli.command()
def serve():
    """Start the MCP server (stdio transport).

    This is used by MCP clients such as Claude Desktop to call
    chatdigest. You usually don't need to run this manually.
    """
    if not SQLITE_PATH.exists():
        click.echo(
            "Warning: No data imported yet. Import a Telegram export first:",
            err=True,
        )
        click.echo("  chatdigest import ~/Downloads/ChatExport/result.json", err=True)

    from .server import mcp

    mcp.run(transport="stdio")


@cli.command()
def stats():
    """Show statistics about your imported chats."""
    if not SQLITE_PATH.exists():
        click.echo("No data found. Import a Telegram export first:")
        click.echo("  chatdigest import ~/Downloads/ChatExport/result.json")
        return

    from .storage import MessageStore

    store = MessageStore(SQLITE_PATH)
    s = store.get_stats()
    store.close()

    click.echo()
    click.echo(click.style("chatdigest Statistics", bold=True))
    click.echo(f"  Chats:          {s['total_chats']:,}")
    click.echo(f"  Messages:       {s['total_messages']:,}")
    click.echo(f"  Avg msgs/chat:  {s['avg_messages_per_chat']}")
    if s["date_range_start"]:
        click.echo(f"  Date range:     {s['date_range_start']} → {s['date_range_end']}")
    if s["top_senders"]:
        click.echo("  Top senders:")
        for u in s["top_senders"]:
            click.echo(f"    {u['username']}: {u['count']:,}")

    db_size = SQLITE_PATH.stat().st_size / (1024 * 1024)
    click.echo(f"  Storage:        {db_size:.1f} MB")
    click.echo(f"  Location:       {DATA_DIR}")
    click.echo()


@cli.command()
def config():
    """Print the MCP server configuration snippet for Claude Desktop."""
    chatdigest_path = shutil.which("chatdigest")

    if chatdigest_path:
        server = {"command": chatdigest_path, "args": ["serve"]}
    else:
        server = {"command": "uvx", "args": ["chatdigest", "serve"]}

    click.echo()
    click.echo("Add this to your Claude Desktop config file:")
    click.echo()
    click.echo(json.dumps({"mcpServers": {"chatdigest": server}}, indent=2))
    click.echo()
    click.echo("The server needs OPENAI_API_KEY in its environment to summarize.")
    click.echo("For AWS Bedrock set CHATDIGEST_PROVIDER=bedrock and the usual AWS credentials instead.")
    click.echo()


@cli.command()
@click.confirmation_option(prompt="This will delete all imported data. Are you sure?")
def reset():
    """Delete all imported data and start fresh."""
    if DATA_DIR.exists():
        shutil.rmtree(DATA_DIR)
        click.echo(f"Deleted {DATA_DIR}")
    else:
        click.echo("No data to delete.")
