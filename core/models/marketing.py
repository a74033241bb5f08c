# =============================================================================
# core/models/marketing.py - Marketing Unsubscribe Schemas
# =============================================================================

from enum import Enum

from pydantic import BaseModel, computed_field


class UnsubscribeStatus(str, Enum):
    """
    Outcome category shown on the unsubscribe result page.

    - success: Contact is (now or already) unsubscribed
    - info: Nothing to do (address isn't a marketing contact)
    - error: Bad link, lookup failure or update failure
    """
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


class UnsubscribeResult(BaseModel):
    """
    Result of an unsubscribe request.

    Rendered either as JSON or as query parameters on a redirect to the
    web app's result page.
    """
    status: UnsubscribeStatus
    title: str
    message: str

    @computed_field
    @property
    def success(self) -> bool:
        return self.status == UnsubscribeStatus.SUCCESS
