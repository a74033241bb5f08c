# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the AI Rocket API:
# - test_*_service.py: Service logic against an in-memory Supabase
# - test_followup.py, test_scheduling.py, test_prompts.py: Pure library code
# - test_messaging.py: Twilio / Telegram clients
# - test_jobs.py: Weekly check-in, report delivery, Celery wiring
# - test_auth.py, test_api_endpoints.py: Auth and HTTP routing
# - test_websocket.py: Per-user WebSocket endpoint and fan-out
#
# Run tests with: pytest
# =============================================================================
