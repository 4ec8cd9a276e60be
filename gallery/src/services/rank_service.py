"""
Curatorial ordering of the painting collection by integer rank.

Higher rank displays first. Inserting at rank r shifts every painting with
rank >= r up by one and then stores the new painting at r, all inside one
transaction, so readers never see a half-shifted collection.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.db import DatabaseError, transaction
from django.db.models import F

from gallery.models import Painting
from gallery.src.exceptions import TransactionFailure, ValidationError

logger = logging.getLogger(__name__)

url_validator = URLValidator(schemes=["http", "https"])


@dataclass
class PaintingFields:
    name: str
    work_type: str
    year: int
    image_location: str
    href: str | None = None


@dataclass
class RankChange:
    painting_id: int
    name: str
    old_rank: int
    new_rank: int


def validate_painting_fields(fields: PaintingFields, requested_rank: int) -> None:
    """Raise ValidationError describing the first invalid input."""
    # bool is an int subclass; True must not pass as rank 1
    if isinstance(requested_rank, bool) or not isinstance(requested_rank, int):
        raise ValidationError("rank must be an integer")
    if requested_rank < 1:
        raise ValidationError("rank must be a positive integer")

    for field_name in ("name", "work_type", "image_location"):
        value = getattr(fields, field_name)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field_name} is required")

    if isinstance(fields.year, bool) or not isinstance(fields.year, int):
        raise ValidationError("year must be an integer")

    for field_name in ("image_location", "href"):
        value = getattr(fields, field_name)
        if field_name == "href" and not value:
            continue
        try:
            url_validator(value.strip())
        except DjangoValidationError:
            raise ValidationError(f"{field_name} must be a valid http(s) URL")


def insert_at_rank(fields: PaintingFields, requested_rank: int) -> Painting:
    """
    Create a painting displayed at `requested_rank`.

    Every existing painting with rank >= requested_rank moves up by one first.
    If either statement fails the whole transaction is rolled back and
    TransactionFailure is raised.
    """
    validate_painting_fields(fields, requested_rank)

    try:
        with transaction.atomic():
            shifted = Painting.objects.filter(rank__gte=requested_rank).update(
                rank=F("rank") + 1
            )
            painting = Painting.objects.create(
                name=fields.name.strip(),
                work_type=fields.work_type.strip(),
                year=fields.year,
                image_location=fields.image_location.strip(),
                href=fields.href or None,
                rank=requested_rank,
            )
    except DatabaseError as e:
        logger.exception(
            "Failed to insert painting %r at rank %d", fields.name, requested_rank
        )
        raise TransactionFailure(
            f"Could not insert painting at rank {requested_rank}"
        ) from e

    logger.info(
        "Inserted painting %d (%s) at rank %d, shifted %d paintings",
        painting.id,
        painting.name,
        requested_rank,
        shifted,
    )
    return painting


def list_all_by_rank_descending() -> list[Painting]:
    return list(Painting.objects.order_by("-rank", "id"))


def plan_dense_ranks(order: Sequence[Painting]) -> list[RankChange]:
    """
    Ranks N, N-1, ..., 1 for the given descending order (N = len(order)).
    """
    total = len(order)
    return [
        RankChange(
            painting_id=painting.id,
            name=painting.name,
            old_rank=painting.rank,
            new_rank=total - index,
        )
        for index, painting in enumerate(order)
    ]


def renumber_dense(order: Sequence[Painting] | None = None) -> list[RankChange]:
    """
    Make ranks contiguous from 1 while keeping the relative order.

    Operator maintenance only; must not run concurrently with insert_at_rank.
    Returns the planned change for every painting, including unchanged ones.
    """
    if order is None:
        order = list_all_by_rank_descending()

    changes = plan_dense_ranks(order)
    paintings_by_id = {painting.id: painting for painting in order}

    to_update = []
    for change in changes:
        if change.old_rank == change.new_rank:
            continue
        painting = paintings_by_id[change.painting_id]
        painting.rank = change.new_rank
        to_update.append(painting)

    if not to_update:
        logger.info("Ranks already dense for %d paintings", len(changes))
        return changes

    try:
        with transaction.atomic():
            Painting.objects.bulk_update(to_update, ["rank"], batch_size=500)
    except DatabaseError as e:
        # In-memory objects were already modified; restore them
        for change in changes:
            paintings_by_id[change.painting_id].rank = change.old_rank
        raise TransactionFailure("Could not renumber painting ranks") from e

    logger.info(
        "Renumbered %d of %d paintings to dense ranks", len(to_update), len(changes)
    )
    return changes
