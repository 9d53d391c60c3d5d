# core/render.py
import os
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .models import Item

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

PAGE_TITLE = "Smart Inventory App"

INVENTORY_THEME = os.getenv("INVENTORY_THEME", "light").strip().lower()
if INVENTORY_THEME not in ("light", "dark"):
    INVENTORY_THEME = "light"

THEMES = {
    "light": {
        "page_bg": "#f3f4f6",
        "card_bg": "#ffffff",
        "card_border": "#d1d5db",
        "text_primary": "#1f2937",
        "text_secondary": "#4b5563",
        "button_bg": "#3b82f6",
        "button_text": "#ffffff",
        "edit_color": "#3b82f6",
        "delete_color": "#ef4444",
    },
    "dark": {
        "page_bg": "#121212",
        "card_bg": "#1E1E1E",
        "card_border": "#333333",
        "text_primary": "#F1F1F1",
        "text_secondary": "#BBBBBB",
        "button_bg": "#2563eb",
        "button_text": "#ffffff",
        "edit_color": "#8AB4F8",
        "delete_color": "#FF6B6B",
    },
}


def format_price(price) -> str:
    return f"${float(price):.2f}"


def _rows(items: List[Item]) -> List[Dict[str, Any]]:
    return [
        {
            "name": it.name,
            "quantity": it.quantity,
            "price_str": format_price(it.price),
        }
        for it in items
    ]


def build_plaintext_table(manager) -> str:
    template = env.get_template("inventory_text.txt")
    rows = _rows(manager.filtered_items)
    name_width = max([len("Item")] + [len(r["name"]) for r in rows])
    qty_width = max([len("Qty")] + [len(str(r["quantity"])) for r in rows])

    ctx = {
        "title": PAGE_TITLE,
        "search_term": manager.search_term,
        "rows": rows,
        "name_width": name_width,
        "qty_width": qty_width,
        "total": len(manager.items),
    }
    return template.render(**ctx)


def build_html_page(manager, theme: str = INVENTORY_THEME) -> str:
    template = env.get_template("inventory.html")
    colors = THEMES.get(theme, THEMES[INVENTORY_THEME])

    ctx = {
        "title": PAGE_TITLE,
        "search_term": manager.search_term,
        "form": manager.form,
        "rows": _rows(manager.filtered_items),
        "colors": colors,
    }
    return template.render(**ctx)
