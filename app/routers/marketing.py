# =============================================================================
# app/routers/marketing.py - Marketing Unsubscribe Endpoint
# =============================================================================
# The unsubscribe link in marketing emails lands here. Browsers are
# redirected to the app's result page; API clients (?format=json or
# Accept: application/json) get the result as JSON.
# =============================================================================

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.config import settings
from core.models.marketing import UnsubscribeResult
from core.services.marketing_service import MarketingService

logger = logging.getLogger(__name__)

router = APIRouter()


def _wants_json(request: Request) -> bool:
    return (
        request.query_params.get("format") == "json"
        or "application/json" in request.headers.get("accept", "")
    )


def _redirect(result: UnsubscribeResult) -> RedirectResponse:
    query = urlencode({
        "status": result.status.value,
        "title": result.title,
        "message": result.message,
    })
    return RedirectResponse(
        url=f"{settings.APP_URL.rstrip('/')}/unsubscribe-result?{query}",
        status_code=302,
    )


def _render(request: Request, result: UnsubscribeResult):
    if _wants_json(request):
        return JSONResponse(content=result.model_dump(mode="json"))
    return _redirect(result)


@router.get("/unsubscribe")
async def unsubscribe(
    request: Request,
    token: str | None = None,
    email: str | None = None,
):
    """
    Unsubscribe a marketing contact by token (email link) or address.

    Always answers with a result page (or JSON); failures are shown to the
    user rather than returned as HTTP errors. Unexpected errors always
    redirect.
    """
    try:
        result = MarketingService.unsubscribe(token=token, email=email)
    except Exception as e:
        logger.exception(f"Unsubscribe failed: {e}")
        return _redirect(MarketingService.unexpected_error())

    return _render(request, result)
