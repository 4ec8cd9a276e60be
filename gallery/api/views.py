import json
import logging
from datetime import datetime, timezone
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from django.db import DatabaseError
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_http_methods
from django_ratelimit.decorators import ratelimit

from gallery.models import Painting
from gallery.src.config import config
from gallery.src.exceptions import TransactionFailure, ValidationError
from gallery.src.services.bucket_service import get_bucket_service
from gallery.src.services.chronology_service import (
    ChronologyResult,
    build_painting_history,
)
from gallery.src.services.rank_service import (
    PaintingFields,
    insert_at_rank,
    list_all_by_rank_descending,
)
from gallery.views.view_utils import admin_required, get_client_ip, has_bearer_token

logger = logging.getLogger(__name__)


def serialize_painting(painting: Painting) -> dict[str, Any]:
    return {
        "id": painting.id,
        "href": painting.href,
        "imageSrc": painting.image_location,
        "name": painting.name,
        "worktype": painting.work_type,
        "year": painting.year,
        "rank": painting.rank,
        "created_at": (
            painting.recorded_at.isoformat() if painting.recorded_at else None
        ),
    }


def serialize_history(result: ChronologyResult) -> dict[str, Any]:
    return {
        "paintings": [
            {
                **serialize_painting(entry.painting),
                "resolvedAt": entry.resolved_at.isoformat(),
                "uploadSource": entry.provenance.value,
            }
            for entry in result.entries
        ],
        "metadata": {
            "total": result.counts["total"],
            "withStorageData": result.counts["storage"],
            "withDatabaseData": result.counts["database"],
            "withFallback": result.counts["fallback"],
            "available": result.available,
        },
    }


def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    # int() would silently truncate 2020.7 to 2020
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def _parse_painting_body(body: bytes) -> tuple[PaintingFields, int]:
    """Parse {imageSrc, name, worktype, year, rank, href?} into insert arguments."""
    try:
        data = json.loads(body or b"{}")
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = [
        key
        for key in ("imageSrc", "name", "worktype", "year", "rank")
        if data.get(key) in (None, "")
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    fields = PaintingFields(
        name=str(data["name"]),
        work_type=str(data["worktype"]),
        year=_parse_int(data["year"], "year"),
        image_location=str(data["imageSrc"]),
        href=data.get("href") or None,
    )
    return fields, _parse_int(data["rank"], "rank")


@ratelimit(key=get_client_ip, rate="60/m", method="GET", block=False)
def _list_paintings(request):
    if getattr(request, "limited", False):
        return JsonResponse(
            {"error": "Too many requests. Please try again later."}, status=429
        )
    try:
        paintings = list_all_by_rank_descending()
    except DatabaseError:
        logger.exception("Error fetching paintings")
        return JsonResponse({"error": "Failed to fetch paintings"}, status=500)
    return JsonResponse([serialize_painting(p) for p in paintings], safe=False)


@admin_required
def _create_painting(request):
    try:
        fields, requested_rank = _parse_painting_body(request.body)
        painting = insert_at_rank(fields, requested_rank)
    except ValidationError as e:
        return JsonResponse({"error": str(e)}, status=400)
    except TransactionFailure:
        return JsonResponse({"error": "Failed to create painting"}, status=500)

    return JsonResponse(serialize_painting(painting), status=201)


@require_http_methods(["GET", "POST"])
def paintings_view(request):
    if request.method == "POST":
        return _create_painting(request)
    return _list_paintings(request)


@require_GET
@ratelimit(key=get_client_ip, rate="30/m", method="GET", block=False)
def history_view(request):
    if getattr(request, "limited", False):
        return JsonResponse(
            {"error": "Too many requests. Please try again later."}, status=429
        )

    bucket_service = get_bucket_service()
    result = build_painting_history(
        storage_lookup=bucket_service.get_object_created_at,
        max_workers=config.history_lookup_workers,
    )

    status = 200 if result.available else 503
    return JsonResponse(serialize_history(result), status=status)


@require_GET
def keep_alive_view(request):
    if not has_bearer_token(request, config.cron_secret):
        return JsonResponse({"error": "Unauthorized"}, status=401)

    try:
        get_bucket_service().ping()
    except (BotoCoreError, ClientError):
        logger.exception("Keep-alive ping failed")
        return JsonResponse(
            {"success": False, "error": "Failed to ping storage"}, status=500
        )

    return JsonResponse({
        "success": True,
        "message": "Storage pinged successfully",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
