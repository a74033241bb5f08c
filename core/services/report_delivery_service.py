# =============================================================================
# core/services/report_delivery_service.py - Scheduled Report Delivery
# =============================================================================
# Generated reports land in astra_chats with a deliver_at time. When that
# time passes, the report is emailed (unless the report or message opts
# out) and deliver_at is cleared so it's not picked up again.
# =============================================================================

import logging
from datetime import datetime
from typing import Any

from app.exceptions import DatabaseError
from lib.edge_functions import error_message, invoke_function
from lib.supabase_client import SupabaseClient, maybe_one, rows
from lib.utils import to_iso, utc_now

logger = logging.getLogger(__name__)

MAX_REPORTS_PER_RUN = 20


class ReportDeliveryService:
    """Service for delivering due reports."""

    @staticmethod
    def deliver_pending_reports(now: datetime | None = None) -> dict[str, Any]:
        """
        Deliver every report whose deliver_at has passed (oldest first).

        Returns:
            {success, summary: {successCount, failureCount, total}, results},
            or {success, message, checkedAt} when nothing is due

        Raises:
            DatabaseError: Pending reports could not be fetched
        """
        now = now or utc_now()
        checked_at = to_iso(now)
        client = SupabaseClient.get_client()

        logger.info("Checking for pending report deliveries...")

        try:
            pending = rows(
                client.table("astra_chats")
                .select("*")
                .eq("mode", "reports")
                .eq("message_type", "astra")
                .not_.is_("deliver_at", "null")
                .lte("deliver_at", checked_at)
                .order("deliver_at")
                .limit(MAX_REPORTS_PER_RUN)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error fetching pending reports: {e}")
            raise DatabaseError(f"Failed to fetch pending reports: {e}", extra={"success": False})

        if not pending:
            logger.info("No pending reports to deliver")
            return {
                "success": True,
                "message": "No pending reports to deliver",
                "checkedAt": checked_at,
            }

        logger.info(f"Found {len(pending)} report(s) to deliver")

        results = []
        for report in pending:
            metadata = report.get("metadata") or {}
            outcome = {
                "reportId": report["id"],
                "title": metadata.get("title"),
                "userEmail": report.get("user_email"),
            }
            try:
                ReportDeliveryService._deliver(report, metadata)
                results.append({**outcome, "success": True})
            except Exception as e:
                logger.error(f"Error delivering report {report['id']}: {e}")
                results.append({**outcome, "success": False, "error": str(e)})

        success_count = sum(1 for r in results if r["success"])
        failure_count = len(results) - success_count
        logger.info(f"Delivery summary: {success_count} succeeded, {failure_count} failed")

        return {
            "success": True,
            "summary": {
                "successCount": success_count,
                "failureCount": failure_count,
                "total": len(pending),
            },
            "results": results,
        }

    @staticmethod
    def _deliver(report: dict[str, Any], metadata: dict[str, Any]) -> None:
        client = SupabaseClient.get_client()
        report_id = metadata.get("reportId")
        send_email = metadata.get("send_email") is not False

        logger.info(f"Delivering report: {metadata.get('title') or 'Unknown'} to {report.get('user_email')}")

        if send_email and report_id:
            config = maybe_one(
                client.table("astra_reports")
                .select("send_email, is_team_report, schedule_frequency")
                .eq("id", report_id)
                .maybe_single()
                .execute()
            ) or {}

            if config.get("send_email") is not False:
                ReportDeliveryService._send_email(report, metadata, report_id, config)

        try:
            client.table("astra_chats").update({"deliver_at": None}).eq("id", report["id"]).execute()
        except Exception as e:
            logger.error(f"Failed to mark report {report['id']} as delivered: {e}")

    @staticmethod
    def _send_email(
        report: dict[str, Any],
        metadata: dict[str, Any],
        report_id: str,
        config: dict[str, Any],
    ) -> None:
        """Email one report; a failed send is logged, not raised."""
        client = SupabaseClient.get_client()
        user_email = report.get("user_email")

        user_name = user_email
        try:
            auth_user = client.auth.admin.get_user_by_id(report["user_id"])
            user_metadata = getattr(getattr(auth_user, "user", None), "user_metadata", None) or {}
            user_name = user_metadata.get("full_name") or user_email
        except Exception as e:
            logger.warning(f"Could not load auth user {report['user_id']}: {e}")

        response = invoke_function("send-report-email", {
            "reportId": report_id,
            "chatMessageId": report["id"],
            "userId": report["user_id"],
            "userEmail": user_email,
            "userName": user_name,
            "reportTitle": metadata.get("title") or "Report",
            "reportContent": report.get("message"),
            "reportFrequency": config.get("schedule_frequency") or "scheduled",
            "isTeamReport": config.get("is_team_report") or False,
        })

        if response.is_success:
            logger.info(f"Email sent to {user_email}")
        else:
            logger.error(f"Failed to send email: {error_message(response, response.text)}")
