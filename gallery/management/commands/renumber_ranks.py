"""
Management command to make painting ranks contiguous (N, N-1, ..., 1).

Keeps the current display order. Must not run while paintings are being added.

Usage:
    python manage.py renumber_ranks [--dry-run] [--yes]
"""

from django.core.management.base import BaseCommand, CommandError

from gallery.src.exceptions import TransactionFailure
from gallery.src.services.rank_service import (
    list_all_by_rank_descending,
    plan_dense_ranks,
    renumber_dense,
)


class Command(BaseCommand):
    help = "Renumber painting ranks to a dense 1..N sequence, keeping display order"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show the planned rank changes without writing them",
        )
        parser.add_argument(
            "--yes",
            action="store_true",
            help="Skip the confirmation prompt",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        assume_yes = options["yes"]

        self.stdout.write("Fetching current paintings with ranks...")
        order = list_all_by_rank_descending()

        if not order:
            self.stdout.write(self.style.WARNING("No paintings found in database"))
            return

        self.stdout.write(f"Found {len(order)} paintings")
        changes = plan_dense_ranks(order)

        self.stdout.write("\nRank updates:")
        for change in changes:
            self.stdout.write(f"{change.name}: {change.old_rank} → {change.new_rank}")

        changed = [c for c in changes if c.old_rank != c.new_rank]
        if not changed:
            self.stdout.write(self.style.SUCCESS("\nRanks are already dense."))
            return

        if dry_run:
            self.stdout.write(
                self.style.WARNING(f"\nDry run: {len(changed)} paintings would change.")
            )
            return

        if not assume_yes:
            confirmation = input("Are you sure you want to continue? [y/N]: ")
            if confirmation.lower() != "y":
                self.stdout.write(self.style.ERROR("Renumbering cancelled."))
                return

        try:
            renumber_dense(order)
        except TransactionFailure as e:
            raise CommandError(f"Renumbering failed: {e}")

        self.stdout.write(
            self.style.SUCCESS(
                f"\nRank update completed! Paintings are now ranked from 1 to {len(order)}"
            )
        )
