from django.db import models


class Painting(models.Model):
    """
    One artwork in the portfolio.

    Display order on the curated pages is by `rank`, highest first. New
    paintings are inserted at a requested rank through
    `gallery.src.services.rank_service.insert_at_rank`, which shifts existing
    ranks up to make room, so committed ranks never collide.

    `recorded_at` is set by the database when the row is created. Rows imported
    before the column existed keep NULL there and are ordered on the history
    page by storage metadata or a synthetic timestamp instead.
    """

    name = models.CharField(max_length=255)
    work_type = models.CharField(max_length=255)
    year = models.IntegerField()
    image_location = models.URLField(
        max_length=1000, help_text="Public URL of the image in object storage"
    )
    href = models.URLField(
        max_length=1000, null=True, blank=True, help_text="Optional external link"
    )
    rank = models.IntegerField(
        db_index=True, help_text="Curatorial display order, higher sorts first"
    )
    recorded_at = models.DateTimeField(
        auto_now_add=True, null=True, help_text="Row creation timestamp"
    )

    class Meta:
        ordering = ["-rank", "id"]
        constraints = [
            # Deferred so a shift or renumber may pass through duplicate
            # values inside its own transaction. Ignored on SQLite.
            models.UniqueConstraint(
                fields=["rank"],
                name="uniq_painting_rank",
                deferrable=models.Deferrable.DEFERRED,
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.year}) #{self.rank}"
