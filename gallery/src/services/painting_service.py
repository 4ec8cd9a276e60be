import logging

from gallery.models import Painting
from gallery.src.services.bucket_service import BucketService, make_upload_key
from gallery.src.services.rank_service import (
    PaintingFields,
    insert_at_rank,
    validate_painting_fields,
)

logger = logging.getLogger(__name__)


def create_painting(
    name: str,
    work_type: str,
    year: int,
    requested_rank: int,
    image_bytes: bytes,
    file_name: str,
    bucket_service: BucketService,
    content_type: str = "image/jpeg",
    href: str | None = None,
) -> Painting:
    """
    Upload the image, then insert the painting at `requested_rank`.

    Input is validated before anything is uploaded. If the insert fails after
    a successful upload the image stays in the bucket; the error propagates.
    """
    key = make_upload_key(file_name)
    # Placeholder location so the other fields are validated before upload
    validate_painting_fields(
        PaintingFields(
            name=name,
            work_type=work_type,
            year=year,
            image_location=bucket_service.get_bucket_image_url(key),
            href=href,
        ),
        requested_rank,
    )

    image_location = bucket_service.upload_image(key, image_bytes, content_type)

    fields = PaintingFields(
        name=name,
        work_type=work_type,
        year=year,
        image_location=image_location,
        href=href,
    )
    painting = insert_at_rank(fields, requested_rank)
    logger.info("Created painting %d from upload %s", painting.id, key)
    return painting
