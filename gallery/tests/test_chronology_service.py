"""
Tests for chronological ordering of paintings by best known upload time.

Storage is replaced by plain functions; ordering rules are checked on unsaved
Painting instances, and the database-backed entry point on real rows.
"""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from gallery.models import Painting
from gallery.src.constants import FALLBACK_EPOCH
from gallery.src.services.chronology_service import (
    ChronologyResult,
    Provenance,
    build_painting_history,
    fallback_instant,
    object_name_from_location,
    resolve_chronological_order,
    resolve_painting,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def painting(painting_id, file_name=None, recorded_at=None):
    file_name = file_name or f"{painting_id}.jpg"
    return Painting(
        id=painting_id,
        name=f"Painting {painting_id}",
        work_type="Oil",
        year=2020,
        rank=painting_id,
        image_location=f"https://eu-central-1.linodeobjects.com/myart/{file_name}",
        recorded_at=recorded_at,
    )


def storage_with(timestamps):
    """Lookup returning the given {object_name: datetime} and None otherwise."""

    def lookup(object_name):
        return timestamps.get(object_name)

    return lookup


# ---- object names and fallback ----


@pytest.mark.unit
@pytest.mark.parametrize(
    "location, expected",
    [
        ("https://host/myart/1700000000000-sunset.jpg", "1700000000000-sunset.jpg"),
        ("https://host/storage/v1/object/public/myart/a%20b.png", "a b.png"),
        ("https://host/myart/c.jpg?width=200#top", "c.jpg"),
        ("https://host/myart/d.jpg/", "d.jpg"),
        ("", None),
        (None, None),
        ("https://host/", None),
    ],
)
def test_object_name_is_trailing_path_segment(location, expected):
    assert object_name_from_location(location) == expected


@pytest.mark.unit
def test_fallback_instant_is_epoch_plus_id_seconds():
    assert fallback_instant(0) == FALLBACK_EPOCH
    assert fallback_instant(90) == FALLBACK_EPOCH + timedelta(seconds=90)


# ---- per-painting priority ----


@pytest.mark.unit
def test_storage_timestamp_wins_over_database_timestamp():
    storage_time = utc(2023, 5, 1, 12)
    record = painting(1, recorded_at=utc(2024, 1, 1))

    resolved = resolve_painting(record, storage_with({"1.jpg": storage_time}))

    assert resolved.resolved_at == storage_time
    assert resolved.provenance == Provenance.STORAGE


@pytest.mark.unit
def test_database_timestamp_used_when_storage_has_no_object():
    recorded_at = utc(2024, 1, 1)
    record = painting(1, recorded_at=recorded_at)

    resolved = resolve_painting(record, storage_with({}))

    assert resolved.resolved_at == recorded_at
    assert resolved.provenance == Provenance.DATABASE


@pytest.mark.unit
def test_fallback_used_when_no_timestamp_is_known():
    resolved = resolve_painting(painting(12), storage_with({}))

    assert resolved.resolved_at == FALLBACK_EPOCH + timedelta(seconds=12)
    assert resolved.provenance == Provenance.FALLBACK


@pytest.mark.unit
def test_naive_storage_timestamp_is_treated_as_utc():
    resolved = resolve_painting(
        painting(1), storage_with({"1.jpg": datetime(2023, 5, 1, 12)})
    )

    assert resolved.resolved_at == utc(2023, 5, 1, 12)
    assert resolved.provenance == Provenance.STORAGE


@pytest.mark.unit
def test_malformed_storage_metadata_falls_through():
    record = painting(1, recorded_at=utc(2024, 1, 1))

    resolved = resolve_painting(record, lambda name: "2023-05-01")

    assert resolved.provenance == Provenance.DATABASE


@pytest.mark.unit
def test_no_storage_lookup_for_location_without_object_name():
    calls = []
    record = painting(3)
    record.image_location = "https://host/"

    resolved = resolve_painting(record, lambda name: calls.append(name))

    assert calls == []
    assert resolved.provenance == Provenance.FALLBACK


# ---- collection ordering ----


@pytest.mark.unit
def test_fallback_paintings_ordered_by_id():
    result = resolve_chronological_order(
        [painting(9), painting(5)], storage_lookup=storage_with({})
    )

    assert [e.painting.id for e in result.entries] == [5, 9]
    assert result.entries[0].resolved_at < result.entries[1].resolved_at


@pytest.mark.unit
def test_every_painting_returned_once_in_non_decreasing_order():
    records = [
        painting(1, recorded_at=utc(2024, 3, 1)),
        painting(2),
        painting(3, recorded_at=utc(2022, 7, 4)),
        painting(4),
        painting(5, recorded_at=utc(2024, 3, 1)),
    ]
    lookup = storage_with({"2.jpg": utc(2023, 1, 1), "4.jpg": utc(2021, 6, 1)})

    result = resolve_chronological_order(records, storage_lookup=lookup)

    ids = [e.painting.id for e in result.entries]
    assert sorted(ids) == [1, 2, 3, 4, 5]
    instants = [e.resolved_at for e in result.entries]
    assert instants == sorted(instants)
    # Equal instants (1 and 5) keep id order
    assert ids == [4, 3, 2, 1, 5]
    assert result.counts == {
        "storage": 2,
        "database": 3,
        "fallback": 0,
        "total": 5,
    }
    assert result.available is True


@pytest.mark.unit
def test_failed_lookup_for_one_painting_does_not_affect_others():
    def flaky_lookup(object_name):
        if object_name == "a.jpg":
            raise ConnectionError("storage unreachable")
        return utc(2023, 2, 2)

    records = [
        painting(1, file_name="a.jpg", recorded_at=utc(2024, 1, 1)),
        painting(2, file_name="b.jpg"),
        painting(3, file_name="c.jpg"),
    ]
    records[2].image_location = "https://host/myart/a.jpg"  # same failing object, no db time

    result = resolve_chronological_order(records, storage_lookup=flaky_lookup)

    by_id = {e.painting.id: e for e in result.entries}
    assert by_id[1].provenance == Provenance.DATABASE
    assert by_id[2].provenance == Provenance.STORAGE
    assert by_id[3].provenance == Provenance.FALLBACK
    assert result.counts["total"] == 3


@pytest.mark.unit
def test_unparseable_image_location_falls_back_without_aborting_history():
    broken = painting(1)
    broken.image_location = "http://[broken/a.jpg"
    records = [broken, painting(2, file_name="b.jpg")]

    result = resolve_chronological_order(
        records, storage_lookup=storage_with({"b.jpg": utc(2023, 5, 1)})
    )

    by_id = {e.painting.id: e for e in result.entries}
    assert by_id[1].provenance == Provenance.FALLBACK
    assert by_id[1].resolved_at == fallback_instant(1)
    assert by_id[2].provenance == Provenance.STORAGE
    assert result.counts["total"] == 2


@pytest.mark.unit
def test_lookups_are_issued_for_every_painting_concurrently():
    seen_threads = set()
    seen_names = []
    lock = threading.Lock()
    barrier = threading.Barrier(3, timeout=5)

    def lookup(object_name):
        with lock:
            seen_names.append(object_name)
            seen_threads.add(threading.get_ident())
        barrier.wait()
        return None

    records = [painting(i) for i in (1, 2, 3)]

    result = resolve_chronological_order(records, storage_lookup=lookup, max_workers=3)

    assert sorted(seen_names) == ["1.jpg", "2.jpg", "3.jpg"]
    assert len(seen_threads) == 3
    assert result.counts["fallback"] == 3


@pytest.mark.unit
def test_without_storage_lookup_only_local_sources_are_used():
    records = [painting(2, recorded_at=utc(2022, 1, 1)), painting(1)]

    result = resolve_chronological_order(records)

    assert [e.provenance for e in result.entries] == [
        Provenance.FALLBACK,
        Provenance.DATABASE,
    ]


@pytest.mark.unit
def test_empty_collection():
    result = resolve_chronological_order([], storage_lookup=storage_with({}))

    assert result.entries == []
    assert result.counts["total"] == 0


# ---- database entry point ----


@pytest.mark.integration
@pytest.mark.django_db
def test_build_history_reads_all_paintings(make_painting):
    legacy = make_painting(1, recorded_at=None)
    recent = make_painting(2)
    uploaded = make_painting(3, image_location="https://host/myart/known.jpg")

    result = build_painting_history(
        storage_lookup=storage_with({"known.jpg": utc(2022, 2, 2)})
    )

    assert [e.painting.id for e in result.entries] == [legacy.id, uploaded.id, recent.id]
    assert [e.provenance for e in result.entries] == [
        Provenance.FALLBACK,
        Provenance.STORAGE,
        Provenance.DATABASE,
    ]


@pytest.mark.integration
@pytest.mark.django_db
def test_build_history_reports_unavailable_when_database_fails():
    with patch.object(
        Painting.objects, "order_by", side_effect=DatabaseError("connection lost")
    ):
        result = build_painting_history(storage_lookup=storage_with({}))

    assert result.available is False
    assert result.entries == []
    assert result.counts == ChronologyResult().counts
