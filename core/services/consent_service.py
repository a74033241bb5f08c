# =============================================================================
# core/services/consent_service.py - Microsoft Tenant Admin Consent
# =============================================================================
# Organisations whose Microsoft 365 admin has granted tenant-wide consent
# let every member connect OneDrive/Outlook without a per-user admin prompt.
#
# Storing consent is a read-then-write (update if the tenant exists, else
# insert); concurrent writes for the same tenant are not coordinated.
# =============================================================================

import logging
from typing import Any

from app.exceptions import DatabaseError, InvalidRequestError
from lib.supabase_client import SupabaseClient, maybe_one
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

CONSENT_TABLE = "microsoft_tenant_consent"


class ConsentService:
    """Service for Microsoft tenant consent records."""

    @staticmethod
    def check_tenant_consent(tenant_id: str | None) -> dict[str, Any]:
        """
        Check whether a tenant has active admin consent.

        Returns:
            {success, tenant_id, has_consent, granted_at}

        Raises:
            InvalidRequestError: tenant_id missing
            DatabaseError: Lookup failed (body carries success=false)
        """
        if not tenant_id:
            raise InvalidRequestError("Missing tenant_id")

        client = SupabaseClient.get_client()
        logger.info(f"Checking consent for tenant: {tenant_id}")

        try:
            consent = maybe_one(
                client.table(CONSENT_TABLE)
                .select("*")
                .eq("tenant_id", tenant_id)
                .eq("is_active", True)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error(f"Tenant consent lookup failed: {e}")
            raise DatabaseError(
                f"Failed to check tenant consent: {e}",
                extra={"success": False},
            )

        return {
            "success": True,
            "tenant_id": tenant_id,
            "has_consent": consent is not None,
            "granted_at": (consent or {}).get("granted_at"),
        }

    @staticmethod
    def store_tenant_consent(
        tenant_id: str | None,
        admin_email: str | None = None,
        team_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Record that a tenant admin granted consent.

        Returns:
            {success, tenant_id, message}

        Raises:
            InvalidRequestError: tenant_id missing
            DatabaseError: Read or write failed (body carries success=false)
        """
        if not tenant_id:
            raise InvalidRequestError("Missing tenant_id")

        client = SupabaseClient.get_client()
        logger.info(f"Storing consent for tenant {tenant_id} (admin={admin_email}, team={team_id})")

        try:
            existing = maybe_one(
                client.table(CONSENT_TABLE)
                .select("*")
                .eq("tenant_id", tenant_id)
                .maybe_single()
                .execute()
            )

            if existing:
                now = utc_now_iso()
                (
                    client.table(CONSENT_TABLE)
                    .update({
                        "granted_at": now,
                        "granted_by_email": admin_email,
                        "is_active": True,
                        "updated_at": now,
                    })
                    .eq("tenant_id", tenant_id)
                    .execute()
                )
                logger.info(f"Updated existing consent record for tenant {tenant_id}")
            else:
                (
                    client.table(CONSENT_TABLE)
                    .insert({
                        "tenant_id": tenant_id,
                        "team_id": team_id or None,
                        "granted_by_email": admin_email,
                        "is_active": True,
                    })
                    .execute()
                )
                logger.info(f"Created consent record for tenant {tenant_id}")

        except Exception as e:
            logger.error(f"Failed to store tenant consent: {e}")
            raise DatabaseError(
                f"Failed to store tenant consent: {e}",
                extra={"success": False},
            )

        return {
            "success": True,
            "tenant_id": tenant_id,
            "message": "Tenant consent recorded successfully",
        }
