"""Tests for ICloudService."""
import pytest

from nefos import ICloudService, MemorySession, Session
from nefos.core.account import AccountProfile

from tests.conftest import make_response


@pytest.fixture
def service(fake_transport, account_data):
    session = Session(
        client_id='auth-fixed',
        session_id='session-id-123',
        session_token='session-token-xyz',
        trust_token=['trust-1']
    )
    return ICloudService(session, fake_transport, AccountProfile.from_dict(account_data))


class TestICloudService:
    """Test suite for ICloudService."""

    def test_account_details(self, service):
        assert service.name == 'Jane Appleseed'
        assert service.email == 'jane@example.com'

    def test_webservice_url(self, service):
        assert service.webservice_url('drivews') == 'https://p42-drivews.icloud.com:443'

    def test_unknown_webservice(self, service):
        with pytest.raises(KeyError):
            service.webservice_url('iCloudEnv')

    def test_calendar_is_cached(self, service):
        assert service.calendar is service.calendar

    def test_serialize_session(self, service):
        """Test the blob decodes back to the same session."""
        assert Session.from_json(service.serialize_session()) == service.session

    def test_save_session(self, service):
        storage = MemorySession()

        service.save_session(storage)

        assert storage.load() == service.session

    @pytest.mark.asyncio
    async def test_fetch_calendars(self, service, fake_transport):
        fake_transport.queue(make_response(200, {}, '{"Event": []}'))

        events = await service.fetch_calendars('Europe/London', '2024-02-01', '2024-02-29')

        assert events == '{"Event": []}'
        assert 'usertz=Europe%2FLondon' in fake_transport.calls[0].url

    @pytest.mark.asyncio
    async def test_authenticate_app(self, service, fake_transport):
        fake_transport.queue(make_response(200, {}, {}))

        await service.authenticate_app('jane@example.com', 'hunter2', 'notes')

        assert fake_transport.calls[0].json['appName'] == 'notes'

    @pytest.mark.asyncio
    async def test_save_cookies_and_close(self, service, fake_transport):
        async with service:
            await service.save_cookies()

        assert fake_transport.saved_cookies == 1
        assert fake_transport.closed is True
