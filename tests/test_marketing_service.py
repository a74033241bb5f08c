# =============================================================================
# tests/test_marketing_service.py - Marketing Unsubscribe Tests
# =============================================================================
# Run with: pytest tests/test_marketing_service.py -v
# =============================================================================

from core.models.marketing import UnsubscribeStatus
from core.services.marketing_service import MarketingService


def _contact(**overrides):
    contact = {
        "id": "contact-1",
        "email": "jane@example.com",
        "first_name": "Jane",
        "unsubscribed": False,
        "unsubscribe_token": "tok-123",
    }
    contact.update(overrides)
    return contact


class TestUnsubscribe:
    """Test MarketingService.unsubscribe."""

    def test_no_token_or_email(self, fake_db):
        result = MarketingService.unsubscribe()

        assert result.status == UnsubscribeStatus.ERROR
        assert result.title == "Invalid Request"
        assert result.success is False

    def test_by_token(self, fake_db):
        fake_db.tables["marketing_contacts"] = [_contact()]

        result = MarketingService.unsubscribe(token="tok-123")

        assert result.status == UnsubscribeStatus.SUCCESS
        assert result.title == "Successfully Unsubscribed"
        assert "jane@example.com" in result.message
        row = fake_db.tables["marketing_contacts"][0]
        assert row["unsubscribed"] is True
        assert row["unsubscribed_at"]

    def test_by_email_is_case_insensitive(self, fake_db):
        fake_db.tables["marketing_contacts"] = [_contact()]

        result = MarketingService.unsubscribe(email="Jane@Example.com")

        assert result.title == "Successfully Unsubscribed"

    def test_token_wins_over_email(self, fake_db):
        fake_db.tables["marketing_contacts"] = [
            _contact(),
            _contact(id="contact-2", email="other@example.com", unsubscribe_token="tok-456"),
        ]

        MarketingService.unsubscribe(token="tok-456", email="jane@example.com")

        by_id = {row["id"]: row for row in fake_db.tables["marketing_contacts"]}
        assert by_id["contact-2"]["unsubscribed"] is True
        assert by_id["contact-1"]["unsubscribed"] is False

    def test_already_unsubscribed(self, fake_db):
        fake_db.tables["marketing_contacts"] = [_contact(unsubscribed=True)]

        result = MarketingService.unsubscribe(token="tok-123")

        assert result.status == UnsubscribeStatus.SUCCESS
        assert result.title == "Already Unsubscribed"
        assert fake_db.writes("marketing_contacts", "update") == []

    def test_unknown_token(self, fake_db):
        result = MarketingService.unsubscribe(token="nope")

        assert result.status == UnsubscribeStatus.ERROR
        assert result.title == "Not Found"

    def test_unknown_email_is_informational(self, fake_db):
        result = MarketingService.unsubscribe(email="stranger@example.com")

        assert result.status == UnsubscribeStatus.INFO
        assert result.title == "Not on Marketing List"
        assert result.message.startswith("stranger@example.com is not on our marketing email list.")

    def test_lookup_failure(self, fake_db):
        fake_db.fail("marketing_contacts", "select")

        result = MarketingService.unsubscribe(email="jane@example.com")

        assert result.status == UnsubscribeStatus.ERROR
        assert result.title == "Not Found"

    def test_update_failure(self, fake_db):
        fake_db.tables["marketing_contacts"] = [_contact()]
        fake_db.fail("marketing_contacts", "update")

        result = MarketingService.unsubscribe(token="tok-123")

        assert result.status == UnsubscribeStatus.ERROR
        assert result.title == "Error"
