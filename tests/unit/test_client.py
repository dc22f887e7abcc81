"""Tests for ICloudClient."""
from unittest.mock import AsyncMock, patch

import pytest

from nefos import (
    ICloudClient,
    ICloudService,
    Authenticated,
    AwaitingSecondFactor,
    MemorySession,
    Session
)
from nefos.core.account import AccountProfile
from nefos.core.exceptions import AuthenticationError, SessionExpiredError, TransportError

from tests.conftest import make_response


@pytest.fixture
def session():
    return Session(
        client_id='auth-fixed',
        session_id='session-id-123',
        session_token='session-token-xyz',
        scnt='scnt-abc',
        account_country='GBR'
    )


@pytest.fixture
def service(session, fake_transport, account_data):
    return ICloudService(session, fake_transport, AccountProfile.from_dict(account_data))


@pytest.fixture
def storage():
    return MemorySession()


def make_client(config, storage, **kwargs):
    kwargs.setdefault('apple_id', 'jane@example.com')
    kwargs.setdefault('password', 'hunter2')
    return ICloudClient(config, storage, **kwargs)


class TestICloudClient:
    """Test suite for ICloudClient."""

    def test_service_before_start(self, config, storage):
        client = make_client(config, storage)

        assert client.is_logged_in is False
        with pytest.raises(RuntimeError):
            client.service

    @pytest.mark.asyncio
    async def test_fresh_sign_in(self, config, storage, service, fake_transport):
        """Test a sign-in stores the session and the cookies."""
        client = make_client(config, storage)

        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))) as mock_sign_in:
            result = await client.start()

        assert result is service
        assert client.service is service
        mock_sign_in.assert_awaited_once_with('jane@example.com', 'hunter2', config)
        assert storage.load() == service.session
        assert fake_transport.saved_cookies == 1

    @pytest.mark.asyncio
    async def test_start_twice(self, config, storage, service):
        client = make_client(config, storage)

        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))) as mock_sign_in:
            await client.start()
            await client.start()

        assert mock_sign_in.await_count == 1

    @pytest.mark.asyncio
    async def test_resumes_stored_session(self, config, storage, session, service):
        """Test a stored session is resumed without signing in."""
        storage.save(session)
        client = make_client(config, storage)

        with patch('nefos.client.resume_session', AsyncMock(return_value=service)) as mock_resume, \
                patch('nefos.client.sign_in', AsyncMock()) as mock_sign_in:
            result = await client.start()

        assert result is service
        mock_resume.assert_awaited_once_with(session, config)
        mock_sign_in.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_session_signs_in(self, config, storage, session, service):
        """Test a refused session is discarded and replaced by a new sign-in."""
        storage.save(session)
        client = make_client(config, storage)

        with patch('nefos.client.resume_session', AsyncMock(side_effect=SessionExpiredError('refused', 401))), \
                patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))) as mock_sign_in:
            await client.start()

        mock_sign_in.assert_awaited_once()
        assert storage.exists()

    @pytest.mark.asyncio
    async def test_corrupt_session_signs_in(self, config, storage, service):
        storage._blob = '{"client_id": '
        client = make_client(config, storage)

        with patch('nefos.client.resume_session', AsyncMock()) as mock_resume, \
                patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))):
            await client.start()

        mock_resume.assert_not_awaited()
        assert storage.load() == service.session

    @pytest.mark.asyncio
    async def test_second_factor_with_callback(
        self, config, storage, session, fake_transport, account_data
    ):
        """Test the code callback answers the two-factor challenge."""
        fake_transport.queue(
            make_response(204),
            make_response(204, {'X-Apple-TwoSV-Trust-Token': 'trust-1'}),
            make_response(200, {}, account_data)
        )
        pending = AwaitingSecondFactor(session, fake_transport)
        client = make_client(config, storage, code_callback=lambda: '123456')

        with patch('nefos.client.sign_in', AsyncMock(return_value=pending)):
            result = await client.start()

        assert result.name == 'Jane Appleseed'
        assert storage.load().trust_token == ['trust-1']
        assert fake_transport.saved_cookies == 1

    @pytest.mark.asyncio
    async def test_second_factor_async_callback(
        self, config, storage, session, fake_transport, account_data
    ):
        fake_transport.queue(make_response(204), make_response(204), make_response(200, {}, account_data))

        async def code():
            return '654321'

        client = make_client(config, storage, code_callback=code)

        with patch('nefos.client.sign_in', AsyncMock(return_value=AwaitingSecondFactor(session, fake_transport))):
            await client.start()

        assert fake_transport.calls[0].json == {'securityCode': {'code': '654321'}}

    @pytest.mark.asyncio
    async def test_second_factor_rejected(self, config, storage, session, fake_transport):
        """Test a rejected code closes the pending sign-in and stores nothing."""
        fake_transport.queue(make_response(400))
        client = make_client(config, storage, code_callback=lambda: '000000')

        with patch('nefos.client.sign_in', AsyncMock(return_value=AwaitingSecondFactor(session, fake_transport))):
            with pytest.raises(AuthenticationError):
                await client.start()

        assert fake_transport.closed is True
        assert not storage.exists()
        assert client.is_logged_in is False

    @pytest.mark.asyncio
    async def test_failed_cookie_save_closes(self, config, storage, service, fake_transport):
        """Test the new service is closed when its cookies cannot be written."""
        fake_transport.save_cookies = AsyncMock(side_effect=TransportError("disk full"))
        client = make_client(config, storage)

        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))):
            with pytest.raises(TransportError):
                await client.start()

        assert fake_transport.closed is True
        assert client.is_logged_in is False

    @pytest.mark.asyncio
    async def test_failed_session_save_closes(self, config, storage, service, fake_transport):
        client = make_client(config, storage)

        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))), \
                patch.object(storage, 'save', side_effect=OSError("read-only")):
            with pytest.raises(OSError):
                await client.start()

        assert fake_transport.closed is True
        assert fake_transport.saved_cookies == 0

    @pytest.mark.asyncio
    async def test_log_out(self, config, storage, service, fake_transport):
        """Test log_out forgets the session and the cookie file."""
        config.config_dir.mkdir(parents=True, exist_ok=True)
        config.cookie_file.write_text('{}', encoding='utf-8')
        client = make_client(config, storage)

        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))):
            await client.start()

        await client.log_out()

        assert not storage.exists()
        assert not config.cookie_file.exists()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, config, storage, service, fake_transport):
        with patch('nefos.client.sign_in', AsyncMock(return_value=Authenticated(service))):
            async with make_client(config, storage) as client:
                assert client.is_logged_in

        assert fake_transport.closed is True
        assert client.is_logged_in is False
