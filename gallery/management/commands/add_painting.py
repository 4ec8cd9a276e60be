import mimetypes
from pathlib import Path

from botocore.exceptions import BotoCoreError, ClientError
from django.core.management.base import BaseCommand, CommandError

from gallery.src.exceptions import TransactionFailure, ValidationError
from gallery.src.services.bucket_service import get_bucket_service
from gallery.src.services.painting_service import create_painting


class Command(BaseCommand):
    help = "Upload an image to the bucket and insert the painting at a rank"

    def add_arguments(self, parser):
        parser.add_argument("image_path", type=str, help="Path to the image file")
        parser.add_argument("--name", type=str, required=True)
        parser.add_argument("--work-type", type=str, required=True)
        parser.add_argument("--year", type=int, required=True)
        parser.add_argument(
            "--rank",
            type=int,
            required=True,
            help="Display position; existing paintings at or above it move up by one",
        )
        parser.add_argument("--href", type=str, default=None)

    def handle(self, *args, **options):
        image_path = Path(options["image_path"])
        if not image_path.is_file():
            raise CommandError(f"Image file not found: {image_path}")

        content_type = mimetypes.guess_type(image_path.name)[0] or "image/jpeg"

        try:
            painting = create_painting(
                name=options["name"],
                work_type=options["work_type"],
                year=options["year"],
                requested_rank=options["rank"],
                image_bytes=image_path.read_bytes(),
                file_name=image_path.name,
                bucket_service=get_bucket_service(),
                content_type=content_type,
                href=options["href"],
            )
        except (ValidationError, ValueError) as e:
            raise CommandError(f"Invalid painting: {e}")
        except (BotoCoreError, ClientError) as e:
            raise CommandError(f"Image upload failed: {e}")
        except TransactionFailure as e:
            raise CommandError(f"Failed to create painting: {e}")

        self.stdout.write(
            self.style.SUCCESS(
                f"Created painting {painting.id} '{painting.name}' at rank {painting.rank}: "
                f"{painting.image_location}"
            )
        )
