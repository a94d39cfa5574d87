# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application.
# =============================================================================

from typing import Any
from uuid import UUID

# Storage usage is tracked in decimal megabytes (profiles.total_size_mb)
BYTES_PER_MB = 1_000_000


# =============================================================================
# UUID Utilities
# =============================================================================

def normalize_uuid(value: str | UUID) -> str:
    """
    Normalize a UUID to string format.

    Handles both string and UUID objects, ensuring consistent string output.

    Args:
        value: UUID as string or UUID object

    Returns:
        String representation of the UUID

    Example:
        project_id = normalize_uuid(uuid_obj)  # "550e8400-..."
        project_id = normalize_uuid("550e8400-...")  # "550e8400-..."
    """
    return str(value) if isinstance(value, UUID) else value


# =============================================================================
# Sizes
# =============================================================================

def bytes_to_mb(size_bytes: int | float | None) -> float:
    """
    Convert a byte count to the megabytes stored in profiles.total_size_mb.

    Example:
        bytes_to_mb(2_500_000)  # 2.5
    """
    return (size_bytes or 0) / BYTES_PER_MB


def mb_to_bytes(size_mb: int | float | None) -> int:
    """Inverse of bytes_to_mb, rounded down to whole bytes."""
    return int((size_mb or 0) * BYTES_PER_MB)


# =============================================================================
# Names
# =============================================================================

def full_name(profile: dict[str, Any] | None, fallback: str = "Unknown User") -> str:
    """
    Build a display name from a profile row.

    Args:
        profile: Row with first_name / last_name (either may be missing)
        fallback: Returned when no name parts are present

    Example:
        full_name({"first_name": "Ada", "last_name": None})  # "Ada"
    """
    if not profile:
        return fallback
    parts = [profile.get("first_name") or "", profile.get("last_name") or ""]
    name = " ".join(part for part in parts if part).strip()
    return name or fallback
