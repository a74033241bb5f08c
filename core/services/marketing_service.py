# =============================================================================
# core/services/marketing_service.py - Marketing Unsubscribe
# =============================================================================
# One-click unsubscribe from marketing emails, by per-contact token (link in
# the email footer) or by address (manual form). Every outcome, including
# failures, is an UnsubscribeResult the router renders as JSON or as a
# redirect to the result page.
# =============================================================================

import logging

from core.models.marketing import UnsubscribeResult, UnsubscribeStatus
from lib.supabase_client import SupabaseClient, maybe_one
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

CONTACT_COLUMNS = "id, email, first_name, unsubscribed"


def _result(status: UnsubscribeStatus, title: str, message: str) -> UnsubscribeResult:
    return UnsubscribeResult(status=status, title=title, message=message)


class MarketingService:
    """Service for marketing list membership."""

    @staticmethod
    def unsubscribe(token: str | None = None, email: str | None = None) -> UnsubscribeResult:
        """
        Unsubscribe a marketing contact.

        The token wins when both are given. Database errors become "error"
        results rather than exceptions, since the user always lands on the
        result page.
        """
        if not token and not email:
            return _result(
                UnsubscribeStatus.ERROR,
                "Invalid Request",
                "No unsubscribe token or email provided.",
            )

        client = SupabaseClient.get_client()
        contact = None
        lookup_failed = False

        try:
            query = client.table("marketing_contacts").select(CONTACT_COLUMNS)
            if token:
                query = query.eq("unsubscribe_token", token)
            else:
                query = query.eq("email", email.lower())
            contact = maybe_one(query.maybe_single().execute())
        except Exception as e:
            logger.error(f"Marketing contact lookup failed: {e}")
            lookup_failed = True

        if not token and not contact and not lookup_failed:
            return _result(
                UnsubscribeStatus.INFO,
                "Not on Marketing List",
                f"{email} is not on our marketing email list. You may be receiving emails "
                "as an active user of AI Rocket. To manage email notifications, please log "
                "in to your account and visit Settings.",
            )

        if lookup_failed or not contact:
            return _result(
                UnsubscribeStatus.ERROR,
                "Not Found",
                "This unsubscribe link is invalid or has expired.",
            )

        if contact.get("unsubscribed"):
            return _result(
                UnsubscribeStatus.SUCCESS,
                "Already Unsubscribed",
                f"{contact['email']} has already been unsubscribed from our marketing emails.",
            )

        try:
            (
                client.table("marketing_contacts")
                .update({"unsubscribed": True, "unsubscribed_at": utc_now_iso()})
                .eq("id", contact["id"])
                .execute()
            )
        except Exception as e:
            logger.error(f"Error updating unsubscribe status: {e}")
            return _result(
                UnsubscribeStatus.ERROR,
                "Error",
                "An error occurred while processing your request. Please try again.",
            )

        logger.info(f"Unsubscribed marketing contact {contact['id']}")
        return _result(
            UnsubscribeStatus.SUCCESS,
            "Successfully Unsubscribed",
            f"{contact['email']} has been unsubscribed from AI Rocket marketing emails. "
            "You will no longer receive promotional emails from us.",
        )

    @staticmethod
    def unexpected_error() -> UnsubscribeResult:
        """Result shown when the handler itself blows up."""
        return _result(
            UnsubscribeStatus.ERROR,
            "Error",
            "An unexpected error occurred. Please try again later.",
        )
