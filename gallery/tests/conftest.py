"""
Pytest configuration for gallery tests.
"""

import pytest
from django.contrib.auth import get_user_model


@pytest.fixture(autouse=True)
def disable_rate_limiting(settings):
    """Disable django-ratelimit for all tests to prevent test interference."""
    settings.RATELIMIT_ENABLE = False


@pytest.fixture
def make_painting():
    """Create a painting row directly, bypassing the rank shift."""
    from gallery.models import Painting

    def _make(rank, name=None, recorded_at="auto", image_location=None, **extra):
        painting = Painting.objects.create(
            name=name or f"Painting {rank}",
            work_type="Oil on canvas",
            year=2020,
            image_location=image_location
            or f"https://eu-central-1.linodeobjects.com/myart/{rank}-painting.jpg",
            rank=rank,
            **extra,
        )
        # auto_now_add ignores explicit values on create; override afterwards
        if recorded_at != "auto":
            Painting.objects.filter(pk=painting.pk).update(recorded_at=recorded_at)
            painting.refresh_from_db()
        return painting

    return _make


@pytest.fixture
def admin_user(db):
    return get_user_model().objects.create_user(
        username="artist", email="Artist@Example.com", password="pw"
    )


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(
        username="visitor", email="visitor@example.com", password="pw"
    )


