# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable clients and helpers:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - object_storage.py: S3 pre-signed URLs and object deletion
# - email_client.py: Transactional email through Resend
# - ttl_cache.py: Time-bounded in-process cache
# - utils.py: Shared utilities (UUID normalization, sizes, names)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.object_storage import BulkDeleteResult, ObjectStorageClient, ObjectStorageError
from lib.email_client import EmailClient, EmailDeliveryError, EmailMessage
from lib.ttl_cache import TTLCache
from lib.utils import bytes_to_mb, full_name, mb_to_bytes, normalize_uuid

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Object storage
    "BulkDeleteResult",
    "ObjectStorageClient",
    "ObjectStorageError",
    # Email
    "EmailClient",
    "EmailDeliveryError",
    "EmailMessage",
    # Cache
    "TTLCache",
    # Utils
    "bytes_to_mb",
    "full_name",
    "mb_to_bytes",
    "normalize_uuid",
]
