from __future__ import annotations

from datetime import datetime, timezone

from core.models.client import Client
from core.services.soft_delete import (
    count_trashed,
    is_trashed,
    list_active,
    list_trashed,
    purge,
    restore,
    soft_delete,
)

WHEN = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)


def _clients():
    return [
        Client(id="a", name="Alpha"),
        Client(id="b", name="Beta", deleted_at=WHEN),
        Client(id="c", name="Gamma"),
    ]


def test_list_active_keeps_order_and_skips_trashed():
    assert [c.id for c in list_active(_clients())] == ["a", "c"]


def test_list_active_ignores_missing_entries():
    items = [None, Client(id="a", name="Alpha"), None]
    assert [c.id for c in list_active(items)] == ["a"]
    assert list_active(None) == []


def test_list_trashed_with_predicate():
    items = _clients() + [Client(id="d", name="Delta", deleted_at=WHEN)]
    assert [c.id for c in list_trashed(items)] == ["b", "d"]
    assert [c.id for c in list_trashed(items, lambda c: c.name.startswith("D"))] == ["d"]
    assert count_trashed(items) == 2


def test_soft_delete_sets_tombstone_without_mutating_input():
    items = _clients()
    out = soft_delete(items, "a", now=WHEN)

    assert out is not items
    assert out[0].deleted_at == WHEN
    assert items[0].deleted_at is None
    assert [c.id for c in list_active(out)] == ["c"]


def test_soft_delete_defaults_to_current_time():
    out = soft_delete(_clients(), "c")
    assert is_trashed(out[2])
    assert out[2].deleted_at.tzinfo is not None


def test_soft_delete_then_restore_gives_back_same_collection():
    items = _clients()
    assert restore(soft_delete(items, "a"), "a") == items


def test_unknown_id_returns_unchanged_copy():
    items = _clients()
    for op in (soft_delete, restore, purge):
        out = op(items, "zzz")
        assert out == items
        assert out is not items


def test_lifecycle_on_missing_collection_gives_empty_list():
    assert soft_delete(None, "a", now=WHEN) == []
    assert restore(None, "a") == []
    assert purge(None, "a") == []


def test_duplicate_ids_only_first_match_changes():
    items = [Client(id="x", name="Un"), Client(id="x", name="Deux")]
    out = soft_delete(items, "x", now=WHEN)
    assert out[0].is_deleted
    assert not out[1].is_deleted

    out = purge(out, "x")
    assert [c.name for c in out] == ["Deux"]


def test_purge_removes_exactly_one_and_keeps_others_state():
    items = _clients()
    out = purge(items, "a")
    assert [c.id for c in out] == ["b", "c"]
    assert out[0].deleted_at == WHEN
    assert out[1].deleted_at is None
    assert len(items) == 3


def test_works_on_raw_dicts():
    items = [{"id": 1, "nom": "Ramette A4", "deleted_at": None}, {"id": 2, "nom": "Carton"}]
    out = soft_delete(items, 2, now=WHEN)
    assert out[1]["deleted_at"] == WHEN
    assert "deleted_at" not in items[1]
    assert [d["id"] for d in list_active(out)] == [1]

    back = restore(out, 2)
    assert back[1]["deleted_at"] is None
    assert [d["id"] for d in list_active(back)] == [1, 2]
