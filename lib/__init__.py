# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - supabase_client.py: Typed Supabase wrapper for database operations
# - edge_functions.py: HTTP invoker for remotely deployed functions
# - messaging.py: Twilio SMS and Telegram Bot API clients
# - llm.py: Gemini text generation (OpenAI-compatible endpoint)
# - scheduling.py: Schedule arithmetic and quiet hours
# - followup.py: Follow-up message detection
# - utils.py: Shared utilities (error handling, UUID normalization, time)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.supabase_client import SupabaseClient, SupabaseClientError, maybe_one, rows
from lib.utils import ApplicationError, normalize_uuid, to_iso, utc_now, utc_now_iso

__all__ = [
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    "maybe_one",
    "rows",
    # Utils
    "ApplicationError",
    "normalize_uuid",
    "to_iso",
    "utc_now",
    "utc_now_iso",
]
