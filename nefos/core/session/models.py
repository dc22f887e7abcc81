"""
Session data model.

The session holds every token captured during sign-in that is needed to
resume without re-entering credentials. The password is never part of it.
"""
from dataclasses import dataclass, field
from typing import List, Dict, Any
import json
import uuid

from .. import headers as h
from ..exceptions import SessionDecodeError


def new_client_id() -> str:
    """Generate a client instance id."""
    return f"auth-{uuid.uuid4()}"


# In-memory attribute -> wire name in the persisted blob
WIRE_NAMES: Dict[str, str] = {
    'client_id': 'client_id',
    'trust_token': h.TRUST_TOKEN,
    'account_country': h.ACCOUNT_COUNTRY,
    'scnt': h.SCNT,
    'session_id': h.SESSION_ID,
    'session_token': h.SESSION_TOKEN,
}


@dataclass
class Session:
    """
    Tokens of an iCloud web session.

    Attributes:
        client_id: Client instance id, stable per installation
        trust_token: Trust tokens granted after a completed 2FA challenge
        account_country: Account country code (X-Apple-ID-Account-Country)
        scnt: State-continuation token echoed on auth-flow requests
        session_id: X-Apple-ID-Session-Id
        session_token: X-Apple-Session-Token, exchanged for the account profile
    """
    client_id: str
    session_id: str
    session_token: str
    scnt: str = ''
    account_country: str = h.DEFAULT_ACCOUNT_COUNTRY
    trust_token: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary keyed by wire names.

        Returns:
            Dictionary representation
        """
        return {
            wire: list(getattr(self, attr)) if attr == 'trust_token' else getattr(self, attr)
            for attr, wire in WIRE_NAMES.items()
        }

    @classmethod
    def from_dict(cls, data: Any) -> 'Session':
        """
        Create from a dictionary keyed by wire names.

        Raises:
            SessionDecodeError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise SessionDecodeError("Session blob must be a JSON object")

        values = {}
        for attr, wire in WIRE_NAMES.items():
            if wire not in data:
                raise SessionDecodeError(f"Session blob is missing {wire!r}", field=wire)
            value = data[wire]
            if attr == 'trust_token':
                if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
                    raise SessionDecodeError(f"{wire!r} must be a list of strings", field=wire)
                value = list(value)
            elif not isinstance(value, str):
                raise SessionDecodeError(f"{wire!r} must be a string", field=wire)
            values[attr] = value

        return cls(**values)

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Session':
        """
        Create from JSON string.

        Raises:
            SessionDecodeError: If the blob is corrupt or partial
        """
        try:
            data = json.loads(json_str)
        except (json.JSONDecodeError, TypeError) as e:
            raise SessionDecodeError(f"Session blob is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def is_valid(self) -> bool:
        """
        Check that the tokens needed for authenticated calls are present.

        Returns:
            True if session id and session token are non-empty
        """
        return bool(self.session_id and self.session_token)

    @property
    def is_trusted(self) -> bool:
        """True once a trust token has been granted."""
        return bool(self.trust_token)
