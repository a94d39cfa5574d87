# =============================================================================
# tests/ - Test Suite
# =============================================================================
# - fakes.py / conftest.py: in-memory Supabase and S3 stand-ins, auth overrides
# - test_*_service.py: service rules (access, quota, cascades, sharing)
# - test_api.py: routes through FastAPI's TestClient
# - test_workers.py: Celery tasks called directly
#
# Run tests with: pytest
# =============================================================================
