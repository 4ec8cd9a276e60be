"""
Chronological ordering of the painting collection for the history page.

Each painting gets one "uploaded at" instant, taken from the first source
that can supply it:

1. storage  - LastModified of the image object in the bucket
2. database - the row's recorded_at column
3. fallback - FALLBACK_EPOCH + id seconds

Storage lookups run concurrently and are best-effort per painting: a failed
lookup only moves that painting down the chain. The result is recomputed on
every call.
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable
from urllib.parse import unquote, urlparse

from django.db import DatabaseError

from gallery.models import Painting
from gallery.src.constants import FALLBACK_EPOCH
from gallery.src.exceptions import MetadataLookupFailure, ResolutionUnavailable

logger = logging.getLogger(__name__)


StorageTimestampLookup = Callable[[str], datetime | None]


class Provenance(str, Enum):
    STORAGE = "storage"
    DATABASE = "database"
    FALLBACK = "fallback"


@dataclass
class ResolvedPainting:
    painting: Painting
    resolved_at: datetime
    provenance: Provenance


def empty_counts() -> dict[str, int]:
    counts = {provenance.value: 0 for provenance in Provenance}
    counts["total"] = 0
    return counts


@dataclass
class ChronologyResult:
    entries: list[ResolvedPainting] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=empty_counts)
    available: bool = True

    @classmethod
    def unavailable(cls) -> "ChronologyResult":
        return cls(available=False)


def object_name_from_location(image_location: str | None) -> str | None:
    """
    Bucket object name referenced by an image URL: its last path segment.

    "https://host/bucket/1700000000000-sunset%20sea.jpg?x=1" -> "1700000000000-sunset sea.jpg"
    """
    if not image_location:
        return None
    path = urlparse(image_location).path
    name = unquote(path.rstrip("/").rsplit("/", 1)[-1])
    return name or None


def fallback_instant(painting_id: int) -> datetime:
    return FALLBACK_EPOCH + timedelta(seconds=painting_id)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def lookup_storage_instant(
    painting: Painting, storage_lookup: StorageTimestampLookup
) -> datetime | None:
    """
    Ask object storage for the painting's upload time.

    Returns None when storage has no matching object. Raises
    MetadataLookupFailure when the lookup itself breaks or returns something
    that is not a datetime, or when the image location is not a parseable URL.
    """
    try:
        object_name = object_name_from_location(painting.image_location)
    except ValueError as e:
        raise MetadataLookupFailure(None, f"unparseable image location: {e}") from e
    if object_name is None:
        return None

    try:
        value = storage_lookup(object_name)
    except Exception as e:
        raise MetadataLookupFailure(object_name, str(e)) from e

    if value is None:
        return None
    if not isinstance(value, datetime):
        raise MetadataLookupFailure(
            object_name, f"unexpected timestamp type {type(value).__name__}"
        )
    return _as_utc(value)


def resolve_from_local_sources(
    painting: Painting, storage_instant: datetime | None
) -> ResolvedPainting:
    if storage_instant is not None:
        return ResolvedPainting(painting, storage_instant, Provenance.STORAGE)
    if painting.recorded_at is not None:
        return ResolvedPainting(
            painting, _as_utc(painting.recorded_at), Provenance.DATABASE
        )
    return ResolvedPainting(
        painting, fallback_instant(painting.id), Provenance.FALLBACK
    )


def resolve_painting(
    painting: Painting, storage_lookup: StorageTimestampLookup | None = None
) -> ResolvedPainting:
    storage_instant = None
    if storage_lookup is not None:
        try:
            storage_instant = lookup_storage_instant(painting, storage_lookup)
        except MetadataLookupFailure as e:
            logger.warning("Painting %d: %s", painting.id, e)
    return resolve_from_local_sources(painting, storage_instant)


def resolve_chronological_order(
    paintings: Iterable[Painting],
    storage_lookup: StorageTimestampLookup | None = None,
    max_workers: int = 8,
) -> ChronologyResult:
    """
    Order paintings ascending by resolved upload instant, ties by id.

    Storage lookups are submitted to a thread pool and all of them are
    collected before sorting.
    """
    paintings = list(paintings)
    start_time = time.time()

    if storage_lookup is None or not paintings:
        resolved = [resolve_painting(painting) for painting in paintings]
    else:
        workers = max(1, min(max_workers, len(paintings)))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(resolve_painting, painting, storage_lookup)
                for painting in paintings
            ]
            resolved = [future.result() for future in futures]

    resolved.sort(key=lambda entry: (entry.resolved_at, entry.painting.id))

    counts = empty_counts()
    for entry in resolved:
        counts[entry.provenance.value] += 1
    counts["total"] = len(resolved)

    elapsed = (time.time() - start_time) * 1000
    logger.info(
        f"[TIMING] resolve_chronological_order - total: {elapsed:.2f}ms, "
        f"paintings={counts['total']}, storage={counts['storage']}, "
        f"database={counts['database']}, fallback={counts['fallback']}"
    )

    return ChronologyResult(entries=resolved, counts=counts)


def load_paintings_by_id() -> list[Painting]:
    try:
        return list(Painting.objects.order_by("id"))
    except DatabaseError as e:
        raise ResolutionUnavailable("Painting list could not be read") from e


def build_painting_history(
    storage_lookup: StorageTimestampLookup | None = None,
    max_workers: int = 8,
) -> ChronologyResult:
    """
    Chronological order of the whole collection.

    Returns ChronologyResult.unavailable() when the database cannot be read.
    """
    try:
        paintings = load_paintings_by_id()
    except ResolutionUnavailable:
        logger.exception("Painting history unavailable")
        return ChronologyResult.unavailable()

    return resolve_chronological_order(
        paintings, storage_lookup=storage_lookup, max_workers=max_workers
    )
