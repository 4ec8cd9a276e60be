import pytest
from django.contrib import admin
from django.test import RequestFactory

from gallery.admin import PaintingAdmin
from gallery.models import Painting


@pytest.mark.integration
@pytest.mark.django_db
def test_admin_is_read_only(admin_user, make_painting):
    painting = make_painting(1)
    request = RequestFactory().get("/admin/gallery/painting/")
    request.user = admin_user
    model_admin = PaintingAdmin(Painting, admin.site)

    assert model_admin.has_add_permission(request) is False
    assert model_admin.has_change_permission(request, painting) is False
    assert model_admin.has_delete_permission(request) is False
    assert model_admin.has_delete_permission(request, painting) is False
