import uuid
from types import SimpleNamespace as NS

from app.services.categories import (
    ASSET_TYPE,
    EXPENSE,
    INCOME,
    asset_type_icons,
    default_id,
    defaults_for,
    is_default_id,
    merged,
)


def _custom(kind, name, icon="Star"):
    return NS(id=uuid.uuid4(), kind=kind, name=name, icon=icon, color="hsl(0 0% 65%)")


class TestDefaultIds:
    def test_slug(self):
        assert default_id(EXPENSE, "Health & Wellness") == "default-expense-health-wellness"

    def test_is_default(self):
        assert is_default_id("default-income-salary")
        assert not is_default_id(str(uuid.uuid4()))
        assert not is_default_id(None)

    def test_defaults_are_unique_per_kind(self):
        for kind in (ASSET_TYPE, EXPENSE, INCOME):
            ids = [row["id"] for row in defaults_for(kind)]
            assert len(ids) == len(set(ids))
            assert all(row["is_default"] for row in defaults_for(kind))


class TestMerged:
    def test_defaults_first_then_custom_of_same_kind(self):
        custom = [_custom(EXPENSE, "Pets"), _custom(INCOME, "Side gig")]
        rows = merged(EXPENSE, custom)
        assert rows[0]["id"] == "default-expense-housing"
        assert rows[-1]["name"] == "Pets"
        assert rows[-1]["is_default"] is False
        assert all(row["kind"] == EXPENSE for row in rows)

    def test_custom_asset_type_overrides_icon(self):
        icons = asset_type_icons([_custom(ASSET_TYPE, "Real Estate", icon="Castle"), _custom(ASSET_TYPE, "Crypto", icon="Bitcoin")])
        assert icons["Real Estate"] == "Castle"
        assert icons["Crypto"] == "Bitcoin"
        assert icons["Pension"] == "ShieldCheck"
