# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains the business rules behind the API:
# - models/: Pydantic schemas for request/response validation
# - services/: Access checks, quota accounting, folder cascades, sharing
#
# Services take an AuthUser and plain IDs and raise app.exceptions errors;
# they never touch FastAPI request objects.
# =============================================================================
