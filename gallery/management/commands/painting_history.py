from django.core.management.base import BaseCommand, CommandError

from gallery.src.config import config
from gallery.src.services.bucket_service import get_bucket_service
from gallery.src.services.chronology_service import build_painting_history


class Command(BaseCommand):
    help = "Print paintings in upload order with the source of each timestamp"

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-storage",
            action="store_true",
            help="Do not query object storage; use database and fallback timestamps only",
        )

    def handle(self, *args, **options):
        storage_lookup = None
        if not options["skip_storage"]:
            storage_lookup = get_bucket_service().get_object_created_at

        result = build_painting_history(
            storage_lookup=storage_lookup,
            max_workers=config.history_lookup_workers,
        )
        if not result.available:
            raise CommandError("Painting history unavailable: database could not be read")

        for entry in result.entries:
            self.stdout.write(
                f"{entry.resolved_at.isoformat()}  [{entry.provenance.value:<8}]  "
                f"#{entry.painting.id} {entry.painting.name}"
            )

        counts = result.counts
        self.stdout.write(
            self.style.SUCCESS(
                f"\nTotal: {counts['total']}, storage: {counts['storage']}, "
                f"database: {counts['database']}, fallback: {counts['fallback']}"
            )
        )
