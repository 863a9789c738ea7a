"""Tests for the capacity-capped store."""

import pytest

from moment_composer.services.bounded_store import (
    PHOTO_CAPACITY,
    SONG_CAPACITY,
    TRANSCRIPTION_CAPACITY,
    BoundedStore,
)


def test_append_evicts_oldest_past_capacity() -> None:
    store: BoundedStore[int] = BoundedStore(3)

    evicted = [store.append(value) for value in range(5)]

    assert evicted == [None, None, None, 0, 1]
    assert store.all() == [2, 3, 4]
    assert len(store) == 3


def test_store_keeps_last_capacity_items_in_order() -> None:
    store: BoundedStore[int] = BoundedStore(PHOTO_CAPACITY)

    for value in range(PHOTO_CAPACITY + 7):
        store.append(value)

    assert store.all() == list(range(7, PHOTO_CAPACITY + 7))


def test_reads_do_not_reorder() -> None:
    store: BoundedStore[str] = BoundedStore(4)
    for value in ("a", "b", "c"):
        store.append(value)

    assert store.find(lambda item: item > "a") == "b"
    assert store.filter(lambda item: item != "b") == ["a", "c"]
    assert store.latest(2) == ["b", "c"]
    assert store.latest(0) == []
    assert list(store) == ["a", "b", "c"]


def test_remove_deletes_specific_item() -> None:
    store: BoundedStore[str] = BoundedStore(4)
    store.append("a")
    store.append("b")

    assert store.remove("a") is True
    assert store.remove("missing") is False
    assert store.all() == ["b"]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        BoundedStore(0)


def test_default_capacities() -> None:
    assert (PHOTO_CAPACITY, TRANSCRIPTION_CAPACITY, SONG_CAPACITY) == (50, 100, 25)
