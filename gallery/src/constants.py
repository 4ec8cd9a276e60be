from datetime import datetime, timezone

# Synthetic upload instants for paintings with no storage or database
# timestamp are FALLBACK_EPOCH + id seconds.
FALLBACK_EPOCH = datetime(2021, 1, 1, tzinfo=timezone.utc)

STORAGE_CACHE_CONTROL = "max-age=2592000"  # 30 days
STORAGE_LIST_PAGE_SIZE = 1000

ALLOWED_IMAGE_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
