"""Tests for the nefos command line."""
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from nefos import ICloudService, Session, SessionExpiredError
from nefos.cli.main import app
from nefos.core.account import AccountProfile

from tests.conftest import FakeTransport, make_response

runner = CliRunner()


@pytest.fixture
def service(config, account_data):
    session = Session(client_id='auth-1', session_id='sid', session_token='tok')
    return ICloudService(session, FakeTransport(config), AccountProfile.from_dict(account_data))


@pytest.fixture
def logged_in(config):
    config.config_dir.mkdir(parents=True, exist_ok=True)
    config.session_file.write_text('{}', encoding='utf-8')
    config.cookie_file.write_text('{}', encoding='utf-8')
    return config


class TestLogout:
    def test_removes_files(self, logged_in):
        result = runner.invoke(app, ['logout', '--config-dir', str(logged_in.config_dir)])

        assert result.exit_code == 0
        assert 'Logged out' in result.output
        assert not logged_in.session_file.exists()
        assert not logged_in.cookie_file.exists()

    def test_nothing_to_remove(self, tmp_path):
        result = runner.invoke(app, ['logout', '--config-dir', str(tmp_path)])

        assert result.exit_code == 0
        assert 'No active session' in result.output


class TestWhoami:
    def test_not_logged_in(self, tmp_path):
        result = runner.invoke(app, ['whoami', '--config-dir', str(tmp_path)])

        assert result.exit_code == 1
        assert 'Not logged in' in result.output

    def test_prints_account(self, logged_in, service):
        with patch('nefos.resume_from_file', AsyncMock(return_value=service)):
            result = runner.invoke(app, ['whoami', '--config-dir', str(logged_in.config_dir)])

        assert result.exit_code == 0
        assert 'Jane Appleseed' in result.output
        assert 'jane@example.com' in result.output
        assert service.transport.saved_cookies == 1

    def test_expired(self, logged_in):
        error = SessionExpiredError('refused', status_code=401)
        with patch('nefos.resume_from_file', AsyncMock(side_effect=error)):
            result = runner.invoke(app, ['whoami', '--config-dir', str(logged_in.config_dir)])

        assert result.exit_code == 1
        assert 'expired' in result.output


class TestCalendar:
    def test_requires_dates(self, tmp_path):
        result = runner.invoke(app, ['calendar', '--config-dir', str(tmp_path)])

        assert result.exit_code != 0

    def test_prints_events(self, logged_in, service):
        service.transport.queue(make_response(200, {}, '{"Event": []}'))

        with patch('nefos.resume_from_file', AsyncMock(return_value=service)):
            result = runner.invoke(app, [
                'calendar', '--tz', 'America/Chicago',
                '--from', '2023-11-01', '--to', '2023-11-30',
                '--config-dir', str(logged_in.config_dir)
            ])

        assert result.exit_code == 0
        assert '{"Event": []}' in result.output
        assert 'usertz=America%2FChicago' in service.transport.calls[0].url


class TestServices:
    def test_lists_services(self, logged_in, service):
        with patch('nefos.resume_from_file', AsyncMock(return_value=service)):
            result = runner.invoke(app, ['services', '--config-dir', str(logged_in.config_dir)])

        assert result.exit_code == 0
        assert service.transport.saved_cookies == 1
