from __future__ import annotations

import json

import pytest

from brandsite.features.storage.service import BrowserStorage, MemoryStore


def test_set_get_remove() -> None:
    s = MemoryStore()
    assert s.get_item("missing") is None

    s.set_item("k", "v")
    assert s.get_item("k") == "v"
    assert "k" in s

    s.remove_item("k")
    assert s.get_item("k") is None
    # removing twice is fine
    s.remove_item("k")


def test_keys_are_coerced_to_str_consistently() -> None:
    s = MemoryStore()
    s.set_item(1, "x")  # type: ignore[arg-type]

    assert s.get_item(1) == "x"  # type: ignore[arg-type]
    assert s.get_item("1") == "x"
    assert 1 in s
    assert list(s.keys()) == ["1"]

    s.remove_item(1)  # type: ignore[arg-type]
    assert len(s) == 0


def test_values_round_trip_verbatim() -> None:
    s = MemoryStore()
    blob = json.dumps({"utm_source": "news letter", "x": None}, ensure_ascii=False)
    s.set_item("blob", blob)
    s.set_item("empty", "")
    assert s.get_item("blob") == blob
    assert s.get_item("empty") == ""


def test_non_string_value_rejected() -> None:
    s = MemoryStore()
    with pytest.raises(TypeError):
        s.set_item("n", 3)  # type: ignore[arg-type]


def test_browser_storage_scopes_are_independent() -> None:
    storage = BrowserStorage()
    storage.session.set_item("k", "session")
    storage.local.set_item("k", "local")

    assert storage.session.get_item("k") == "session"
    assert storage.local.get_item("k") == "local"

    storage.session.clear()
    assert list(storage.session.keys()) == []
    assert storage.local.get_item("k") == "local"
