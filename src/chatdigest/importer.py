"""Import pipeline: export file → parsing → storage."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path
from typing import Any

import click

from .config import SQLITE_PATH
from .parser import parse_export
from .storage import MessageStore

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "result.json"


def _load_export(export_file: Path) -> Any:
    """Read result.json from a bare JSON file or from a ZIP containing it."""
    if zipfile.is_zipfile(str(export_file)):
        with zipfile.ZipFile(str(export_file), "r") as zf:
            candidates = [n for n in zf.namelist() if n.rsplit("/", 1)[-1] == EXPORT_FILENAME]
            if not candidates:
                raise click.ClickException(
                    f"No {EXPORT_FILENAME} found in ZIP. Make sure this is a Telegram "
                    "Desktop export in JSON format (Export chat history → Format: JSON)."
                )
            # Shallowest path wins when the archive nests several exports
            with zf.open(min(candidates, key=lambda n: n.count("/"))) as f:
                return json.load(f)

    try:
        with open(export_file, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Not a valid JSON export: {export_file} ({e})") from e


def import_telegram_export(
    export_path: str, force: bool = False, db_path: Path = SQLITE_PATH
) -> dict:
    """Import a Telegram Desktop export (result.json or a ZIP of the export folder).

    Returns a summary dict with import statistics.
    """
    export_file = Path(export_path)

    if not export_file.exists():
        raise click.ClickException(f"File not found: {export_path}")

    click.echo("Reading export...")
    data = _load_export(export_file)

    if not isinstance(data, dict):
        raise click.ClickException(f"{EXPORT_FILENAME} is not a JSON object.")

    click.echo("Parsing chats...")
    chats = parse_export(data)
    click.echo(f"Successfully parsed {len(chats)} chats.")

    if not chats:
        click.echo("No chats to import.")
        return {"imported": 0, "skipped": 0, "messages": 0}

    store = MessageStore(db_path)

    imported = 0
    skipped = 0
    total_messages = 0

    with click.progressbar(chats, label="Importing chats", show_pos=True) as progress:
        for chat in progress:
            if not force and store.chat_exists(chat.id):
                skipped += 1
                continue

            store.upsert_chat(chat)
            imported += 1
            total_messages += chat.message_count

    store.record_import(file_path=str(export_file), chats=imported, messages=total_messages)
    stats = store.get_stats()
    store.close()

    logger.info("Imported %d chats (%d messages) from %s", imported, total_messages, export_file)

    click.echo()
    click.echo(click.style("Import complete!", fg="green", bold=True))
    click.echo(f"  Imported: {imported} chats ({total_messages} messages)")
    if skipped:
        click.echo(f"  Skipped:  {skipped} (already imported, use --force to re-import)")
    if stats["date_range_start"]:
        click.echo(f"  Range:    {stats['date_range_start']} → {stats['date_range_end']}")

    return {"imported": imported, "skipped": skipped, "messages": total_messages}
