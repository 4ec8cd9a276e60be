import secrets
from functools import wraps

from django.http import HttpRequest, JsonResponse

from gallery.src.config import config


def get_client_ip(group, request: HttpRequest) -> str:
    """Rate-limit key: first address in X-Forwarded-For, else REMOTE_ADDR."""
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


def is_admin(request: HttpRequest) -> bool:
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return False
    email = (user.email or "").strip().lower()
    return bool(email) and email == config.admin_email.strip().lower()


def admin_required(view_func):
    """
    Only the allow-listed admin identity gets through; everyone else gets 401.
    """

    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not is_admin(request):
            return JsonResponse({"error": "Unauthorized"}, status=401)
        return view_func(request, *args, **kwargs)

    return _wrapped


def has_bearer_token(request: HttpRequest, secret: str | None) -> bool:
    if not secret:
        return False
    return secrets.compare_digest(
        request.headers.get("Authorization", "").encode(), f"Bearer {secret}".encode()
    )
