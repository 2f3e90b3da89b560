import pytest
import questionary

from pgterm.cli.common import output
from pgterm.cli.common.tui_style import SELECT_STYLE
from pgterm.cli.tui import (
    _MAX_NAME_WIDTH,
    BACK,
    LOAD_MORE,
    _table_choice_title,
    _truncate,
    name_choices,
    row_actions,
    table_choices,
)
from pgterm.core.models import RowBatch


class _Views:
    def __init__(self, keys):
        self.keys = set(keys)

    def exists(self, key: str) -> bool:
        return key in self.keys


def test_table_choice_title_marks_open_tables_with_aligned_suffix():
    first = _table_choice_title("users", name_width=10, opened=True)
    second = _table_choice_title("order_items", name_width=11, opened=True)

    assert first.startswith("users")
    assert first.endswith("(open)")
    assert second.endswith("(open)")
    assert _table_choice_title("users", name_width=10, opened=False) == "users"


def test_table_choice_title_truncates_long_names():
    long_name = "x" * (_MAX_NAME_WIDTH + 10)

    rendered = _table_choice_title(long_name, name_width=_MAX_NAME_WIDTH, opened=False)

    assert rendered.endswith("...")
    assert len(rendered) == _MAX_NAME_WIDTH
    assert _truncate("abc", 3) == "abc"


def test_table_choices_use_view_cache_and_end_with_back():
    views = _Views({"generic.public.users"})

    choices = table_choices(views, "generic", "public", ["orders", "users"])

    assert [c.value for c in choices] == ["orders", "users", BACK]
    assert "(open)" not in choices[0].title
    assert "(open)" in choices[1].title


def test_name_choices_end_with_back():
    assert [c.value for c in name_choices(["public"])] == ["public", BACK]


def test_row_actions_offer_load_more_until_exhausted():
    batch = RowBatch(schema="public", table="users", header=("id",), total=150, batch_size=80, loaded=80)
    assert row_actions(batch) == [LOAD_MORE, BACK]

    batch.loaded = 150
    assert row_actions(batch) == [BACK]


def test_select_one_uses_menu_style(monkeypatch):
    seen = {}

    class _Prompt:
        def ask(self):
            return "public"

    def _select(message, **kwargs):
        seen["message"] = message
        seen.update(kwargs)
        return _Prompt()

    monkeypatch.setattr(questionary, "select", _select)

    assert output.out.select_one("Schemas:", name_choices(["public"])) == "public"
    assert seen["style"] is SELECT_STYLE
    assert seen["message"] == "[PGTERM] Schemas:"


def test_select_one_without_choices_does_not_prompt(monkeypatch):
    monkeypatch.setattr(questionary, "select", lambda *a, **k: pytest.fail("prompted"))

    assert output.out.select_one("Schemas:", []) is None
