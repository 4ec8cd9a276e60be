from django.contrib import admin
from django.utils.html import format_html
from .models import Painting


@admin.register(Painting)
class PaintingAdmin(admin.ModelAdmin):
    list_display = ("name", "work_type", "year", "rank", "recorded_at", "get_image_link_html")
    list_filter = ("work_type", "year")
    search_fields = ("name",)
    ordering = ("-rank", "id")
    readonly_fields = (
        "name",
        "work_type",
        "year",
        "image_location",
        "href",
        "rank",
        "recorded_at",
    )

    def get_image_link_html(self, obj):
        """HTML link to the stored image."""
        return format_html('<a href="{}" target="_blank">🔗</a>', obj.image_location)

    get_image_link_html.short_description = "Image"

    def has_add_permission(self, request):
        """Paintings are created with insert_at_rank so existing ranks are shifted."""
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
