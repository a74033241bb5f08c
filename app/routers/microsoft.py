# =============================================================================
# app/routers/microsoft.py - Microsoft Tenant Consent Endpoints
# =============================================================================
# Records whether a Microsoft 365 tenant admin granted org-wide consent, so
# users of that tenant skip the per-user consent screen.
# =============================================================================

from fastapi import APIRouter

from core.models.integrations import TenantConsentRequest, TenantConsentStatus, TenantConsentStored
from core.services.consent_service import ConsentService

router = APIRouter()


@router.post("/consent/check", response_model=TenantConsentStatus)
async def check_tenant_consent(request: TenantConsentRequest):
    """Whether the tenant has granted admin consent."""
    return ConsentService.check_tenant_consent(request.tenant_id)


@router.post("/consent/store", response_model=TenantConsentStored)
async def store_tenant_consent(request: TenantConsentRequest):
    """Record (or refresh) a tenant's admin consent."""
    return ConsentService.store_tenant_consent(
        request.tenant_id,
        admin_email=request.admin_email,
        team_id=request.team_id,
    )
