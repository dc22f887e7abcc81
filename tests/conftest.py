"""Pytest fixtures for nefos tests."""
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
from multidict import CIMultiDict, CIMultiDictProxy

from nefos.core.account import REQUIRED_WEBSERVICES
from nefos.core.api import APIConfig, CookieStore, TransportResponse


def make_response(
    status: int = 200,
    headers: Optional[Dict[str, str]] = None,
    body: Any = None,
    url: str = 'https://example.invalid/'
) -> TransportResponse:
    """Build a fully read response."""
    if body is None:
        text = ''
    elif isinstance(body, str):
        text = body
    else:
        text = json.dumps(body)
    return TransportResponse(
        status=status,
        headers=CIMultiDictProxy(CIMultiDict(headers or {})),
        text=text,
        url=url
    )


@dataclass
class RecordedCall:
    method: str
    url: str
    json: Any = None
    headers: Optional[Dict[str, str]] = None
    data: Any = None


class FakeTransport:
    """Transport double that replays queued responses and records requests."""

    def __init__(self, config: APIConfig, responses: Optional[List[TransportResponse]] = None):
        self.config = config
        self.cookie_store = CookieStore(config.cookie_file)
        self.responses = list(responses or [])
        self.calls: List[RecordedCall] = []
        self.saved_cookies = 0
        self.closed = False

    def queue(self, *responses: TransportResponse) -> 'FakeTransport':
        self.responses.extend(responses)
        return self

    async def request(self, method, url, *, json=None, headers=None, data=None):
        self.calls.append(RecordedCall(method, url, json, headers, data))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        return self.responses.pop(0)

    async def get(self, url, **kwargs):
        return await self.request('GET', url, **kwargs)

    async def post(self, url, **kwargs):
        return await self.request('POST', url, **kwargs)

    async def save_cookies(self):
        self.saved_cookies += 1
        return 0

    async def close(self):
        self.closed = True


SIGNIN_HEADERS = {
    'X-Apple-ID-Account-Country': 'GBR',
    'scnt': 'scnt-abc',
    'X-Apple-ID-Session-Id': 'session-id-123',
    'X-Apple-Session-Token': 'session-token-xyz',
}


@pytest.fixture
def config(tmp_path):
    """Configuration storing its files in a temporary directory."""
    return APIConfig.in_directory(tmp_path)


@pytest.fixture
def fake_transport(config):
    """Transport double with an empty response queue."""
    return FakeTransport(config)


@pytest.fixture
def signin_headers():
    """Headers of a successful sign-in response."""
    return dict(SIGNIN_HEADERS)


@pytest.fixture
def account_data():
    """Returns a sample accountLogin response body."""
    webservices = {
        name: {'url': f'https://p42-{name}.icloud.com:443', 'status': 'active'}
        for name in REQUIRED_WEBSERVICES
    }
    webservices['mail']['isMakoAccount'] = False
    webservices['iCloudEnv'] = {'shortId': 'p', 'vipSuffix': 'prod'}
    webservices['mccgateway'] = {'url': 'https://mccgateway.icloud.com', 'pcsRequired': True}

    return {
        'dsInfo': {
            'dsid': '1234567890',
            'fullName': 'Jane Appleseed',
            'firstName': 'Jane',
            'lastName': 'Appleseed',
            'primaryEmail': 'jane@example.com',
            'appleIdAliases': ['jane@icloud.com'],
            'languageCode': 'en-us',
            'locale': 'en_US',
            'countryCode': 'USA',
            'isManagedAppleID': False,
            'isPaidDeveloper': True,
            'locked': False,
        },
        'webservices': webservices,
        'isExtendedLogin': True,
    }
