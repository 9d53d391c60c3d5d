import os
import shlex
from pathlib import Path
from typing import List, Optional

import click

from core.errors import InventoryError
from core.inventory import InventoryManager
from core.logger import get_logger
from core.render import build_html_page, build_plaintext_table
from stores import STORE, STORES, open_store

logger = get_logger(__name__)

MODE = os.getenv("MODE", "interactive").lower()  # "interactive" or "once"

HELP_TEXT = """Commands:
  add                 fill in the form and add the item
  edit NAME           load NAME into the form, then submit it again
  delete NAME         delete NAME after confirmation
  search [TERM]       filter the table by name (no term clears the filter)
  list                show the table
  refresh             reload from the store
  export PATH         write the page as HTML
  help                show this help
  quit                leave"""


def alert(message: str) -> None:
    click.echo(click.style(message, fg="red"), err=True)


def confirm(message: str) -> bool:
    return click.confirm(message, default=False)


def render_table(manager: InventoryManager) -> None:
    click.echo(build_plaintext_table(manager))


class TableView:
    """Re-renders the console table only when its text changed since the last draw."""

    def __init__(self):
        self.last = None

    def __call__(self, manager: InventoryManager) -> None:
        text = build_plaintext_table(manager)
        if text != self.last:
            click.echo(text)
        self.last = text


def prompt_form(manager: InventoryManager) -> None:
    form = manager.form
    # Blank answers keep the pending value, which is "" for a fresh form
    for label, current, setter in (
        ("Item Name", form.item_name, manager.set_item_name),
        ("Qty", form.quantity, manager.set_quantity),
        ("Price", form.price, manager.set_price),
    ):
        setter(click.prompt(label, default=current, show_default=bool(current)))
    manager.submit()


def _lookup(manager: InventoryManager, args: List[str]):
    name = " ".join(args)
    if not name:
        alert("An item name is required.")
        return None
    item = manager.find(name)
    if item is None:
        alert(f"No item named {name}.")
    return item


def handle_command(manager: InventoryManager, line: str) -> bool:
    """Run one console command. Returns False when the user wants to leave."""
    try:
        parts = shlex.split(line)
    except ValueError as e:
        alert(f"Could not parse command: {e}")
        return True
    if not parts:
        return True

    cmd, args = parts[0].lower(), parts[1:]
    if cmd in ("quit", "exit", "q"):
        return False
    if cmd == "help":
        click.echo(HELP_TEXT)
    elif cmd == "add":
        prompt_form(manager)
    elif cmd == "edit":
        item = _lookup(manager, args)
        if item:
            manager.edit(item)
            prompt_form(manager)
    elif cmd == "delete":
        item = _lookup(manager, args)
        if item:
            manager.delete(item)
    elif cmd == "search":
        manager.set_search_term(" ".join(args))
    elif cmd == "list":
        render_table(manager)
    elif cmd == "refresh":
        manager.refresh()
    elif cmd == "export":
        if not args:
            alert("export needs a file path.")
        else:
            export_html(manager, args[0])
    else:
        alert(f"Unknown command '{cmd}'. Type 'help' for the list.")
    return True


def export_html(manager: InventoryManager, path: str) -> None:
    out = Path(path)
    out.write_text(build_html_page(manager), encoding="utf-8")
    logger.info("Wrote inventory page to %s", out)


def run_once(manager: InventoryManager, html_path: Optional[str] = None) -> int:
    manager.load()
    if html_path:
        export_html(manager, html_path)
    else:
        render_table(manager)
    return 0


def run_interactive(manager: InventoryManager) -> None:
    try:
        manager.load()
    except Exception as e:
        logger.exception("Initial load failed: %s", e)

    click.echo("Type 'help' for commands.")
    while True:
        try:
            line = click.prompt("inventory", default="", show_default=False)
        except click.exceptions.Abort:
            click.echo()
            break
        try:
            if not handle_command(manager, line):
                break
        except click.exceptions.Abort:
            click.echo()
        except Exception as e:
            logger.exception("Command '%s' failed: %s", line, e)


@click.command()
@click.option(
    "--store",
    "store_name",
    type=click.Choice(sorted(STORES)),
    default=STORE if STORE in STORES else "firestore",
    show_default=True,
    help="Document store backend.",
)
@click.option("--once", is_flag=True, help="Print the inventory and exit.")
@click.option(
    "--html",
    "html_path",
    type=click.Path(dir_okay=False),
    help="With --once, write an HTML page instead.",
)
def main(store_name: str, once: bool, html_path: Optional[str]) -> None:
    """Smart Inventory: add, search, edit and delete inventory items."""
    try:
        store = open_store(store_name)
    except InventoryError as e:
        logger.error("Cannot open %s store: %s", store_name, e)
        raise SystemExit(1)

    once = once or MODE == "once"
    manager = InventoryManager(
        store,
        alert=alert,
        confirm=confirm,
        on_change=None if once else TableView(),
    )
    try:
        if once:
            raise SystemExit(run_once(manager, html_path))
        run_interactive(manager)
    except Exception as e:
        logger.exception("Fatal inventory error: %s", e)
        raise SystemExit(2)
    finally:
        store.close()


if __name__ == "__main__":
    main()
