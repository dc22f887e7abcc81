"""Tests for the calendar service."""
import pytest

from nefos.core.account import AccountProfile
from nefos.core.exceptions import ServiceError
from nefos.core.services import CalendarService

from tests.conftest import make_response

EVENTS_URL = (
    'https://p42-calendar.icloud.com:443/ca/events'
    '?lang=en-us&usertz=America%2FChicago&startDate=2023-11-01&endDate=2023-11-30'
)


@pytest.fixture
def calendar(fake_transport, account_data):
    return CalendarService(fake_transport, AccountProfile.from_dict(account_data))


class TestCalendarService:
    """Test suite for CalendarService."""

    def test_base_url_from_profile(self, calendar):
        assert calendar.base_url == 'https://p42-calendar.icloud.com:443'

    def test_events_url(self, calendar):
        """Test query order and encoding of the events URL."""
        assert calendar.events_url('America/Chicago', '2023-11-01', '2023-11-30') == EVENTS_URL

    def test_language_from_profile(self, fake_transport, account_data):
        account_data['dsInfo']['languageCode'] = 'de-de'
        calendar = CalendarService(fake_transport, AccountProfile.from_dict(account_data))

        assert '?lang=de-de&' in calendar.events_url('UTC', '2024-01-01', '2024-01-31')

    @pytest.mark.asyncio
    async def test_fetch_returns_raw_body(self, calendar, fake_transport):
        """Test the body is returned untouched."""
        body = '{"Event": [], "Collection": []}'
        fake_transport.queue(make_response(200, {}, body))

        events = await calendar.fetch_events('America/Chicago', '2023-11-01', '2023-11-30')

        assert events == body
        call = fake_transport.calls[0]
        assert call.method == 'GET'
        assert call.url == EVENTS_URL

    @pytest.mark.asyncio
    async def test_error_status(self, calendar, fake_transport):
        fake_transport.queue(make_response(450, {}, '{"reason": "Missing X-APPLE-WEBAUTH-TOKEN"}'))

        with pytest.raises(ServiceError) as exc_info:
            await calendar.fetch_events('UTC', '2023-11-01', '2023-11-30')

        assert exc_info.value.service == 'calendar'
        assert exc_info.value.status_code == 450
