"""Header names and constant values of the iCloud web auth protocol."""
from typing import Dict

WIDGET_KEY = 'd39ba9916b7251055b22c7f910e2ea796ee65e98b2ddecea8f5dde8d9d1a815d'

# Response headers captured into the session
ACCOUNT_COUNTRY = 'X-Apple-ID-Account-Country'
SCNT = 'scnt'
SESSION_ID = 'X-Apple-ID-Session-Id'
SESSION_TOKEN = 'X-Apple-Session-Token'
TRUST_TOKEN = 'X-Apple-TwoSV-Trust-Token'

DEFAULT_ACCOUNT_COUNTRY = 'USA'


def get_auth_headers(client_id: str, redirect_uri: str = 'https://www.icloud.com') -> Dict[str, str]:
    """
    Headers sent with every request of the sign-in flow.

    Args:
        client_id: Client instance id, echoed back as the OAuth state
        redirect_uri: Web origin registered for the widget key

    Returns:
        Header dict
    """
    return {
        'Accept': 'application/json',
        'Content-Type': 'application/json',
        'X-Apple-OAuth-Client-Id': WIDGET_KEY,
        'X-Apple-OAuth-Client-Type': 'firstPartyAuth',
        'X-Apple-OAuth-Redirect-URI': redirect_uri,
        'X-Apple-OAuth-Require-Grant-Code': 'true',
        'X-Apple-OAuth-Response-Mode': 'web_message',
        'X-Apple-OAuth-Response-Type': 'code',
        'X-Apple-OAuth-State': client_id,
        'X-Apple-Widget-Key': WIDGET_KEY,
    }


def get_session_headers(client_id: str, scnt: str, session_id: str, redirect_uri: str = 'https://www.icloud.com') -> Dict[str, str]:
    """Auth headers plus the state-continuation token and session id."""
    headers = get_auth_headers(client_id, redirect_uri)
    headers[SCNT] = scnt
    headers[SESSION_ID] = session_id
    return headers
