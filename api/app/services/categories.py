"""Built-in categories every user sees alongside their own.

Defaults have stable string ids (``default-<kind>-<slug>``) and are never
stored, edited or deleted.
"""

import re

ASSET_TYPE = "asset_type"
EXPENSE = "expense"
INCOME = "income"
KINDS = (ASSET_TYPE, EXPENSE, INCOME)


def _chart(n: int) -> str:
    return f"hsl(var(--chart-{n}))"


DEFAULT_ASSET_TYPES = [
    {"name": "Savings", "icon": "Wallet", "color": _chart(1)},
    {"name": "Investment", "icon": "BarChart", "color": _chart(2)},
    {"name": "Real Estate", "icon": "Home", "color": _chart(3)},
    {"name": "Pension", "icon": "ShieldCheck", "color": _chart(4)},
    {"name": "Other", "icon": "Landmark", "color": _chart(5)},
]

DEFAULT_EXPENSE_CATEGORIES = [
    {"name": "Housing", "icon": "Home", "color": _chart(1)},
    {"name": "Groceries", "icon": "ShoppingCart", "color": _chart(2)},
    {"name": "Dining Out", "icon": "Utensils", "color": _chart(3)},
    {"name": "Transportation", "icon": "Car", "color": _chart(4)},
    {"name": "Utilities", "icon": "Zap", "color": _chart(5)},
    {"name": "Health & Wellness", "icon": "HeartPulse", "color": _chart(1)},
    {"name": "Shopping", "icon": "ShoppingBag", "color": _chart(2)},
    {"name": "Entertainment", "icon": "Film", "color": _chart(3)},
    {"name": "Subscriptions", "icon": "Repeat", "color": _chart(4)},
    {"name": "Other", "icon": "Paperclip", "color": _chart(5)},
]

DEFAULT_INCOME_CATEGORIES = [
    {"name": "Salary", "icon": "Briefcase", "color": _chart(1)},
    {"name": "Freelance", "icon": "Laptop", "color": _chart(2)},
    {"name": "Investment", "icon": "TrendingUp", "color": _chart(3)},
    {"name": "Gifts", "icon": "Gift", "color": _chart(4)},
    {"name": "Rental Income", "icon": "Building", "color": _chart(5)},
    {"name": "Other", "icon": "Paperclip", "color": _chart(1)},
]

_DEFAULTS = {
    ASSET_TYPE: DEFAULT_ASSET_TYPES,
    EXPENSE: DEFAULT_EXPENSE_CATEGORIES,
    INCOME: DEFAULT_INCOME_CATEGORIES,
}


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def default_id(kind: str, name: str) -> str:
    return f"default-{kind}-{_slug(name)}"


def is_default_id(category_id) -> bool:
    return isinstance(category_id, str) and category_id.startswith("default-")


def defaults_for(kind: str) -> list[dict]:
    return [
        {"id": default_id(kind, c["name"]), "kind": kind, "is_default": True, **c}
        for c in _DEFAULTS[kind]
    ]


def merged(kind: str, custom: list) -> list[dict]:
    """Defaults first, then the user's own categories of that kind."""
    rows = defaults_for(kind)
    rows += [
        {"id": str(c.id), "kind": c.kind, "name": c.name, "icon": c.icon, "color": c.color, "is_default": False}
        for c in custom
        if c.kind == kind
    ]
    return rows


def asset_type_icons(custom: list = ()) -> dict[str, str]:
    """Asset type name → icon, custom types overriding defaults of the same name."""
    return {row["name"]: row["icon"] for row in merged(ASSET_TYPE, list(custom))}
