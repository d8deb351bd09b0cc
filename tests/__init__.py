# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the VoiceNative Directory API:
# - test_models.py: Request models and input validation
# - test_rate_limit.py: Counter stores and per-action limits
# - test_*_service.py: Workflow services over the in-memory FakeSupabase
# - test_auth.py: Tokens, sign-in/sign-up and page redirects
# - test_webhooks.py: Payment webhook signatures and endpoint
# - test_api.py: HTTP endpoints via TestClient
#
# Run tests with: poetry run pytest
# =============================================================================
