"""
Async authentication service.

Implements the three network exchanges of the iCloud web sign-in:

1. sign-in with credentials (may ask for a second factor),
2. trusted-device code verification followed by a trust request,
3. session-token exchange at accountLogin, which returns the profile.

The service is stateless apart from the transport: every token lives on
the Session passed in and out.
"""
from dataclasses import dataclass, field
from typing import Optional, Any

from .transport import AsyncTransport, TransportResponse
from .. import headers as h
from ..account import AccountProfile
from ..exceptions import (
    AuthenticationError,
    ProtocolError,
    SessionExpiredError
)
from ..logging import get_logger, redact
from ..session import Session, new_client_id

# authType announcing a trusted-device (HSA2) challenge
AUTH_TYPE_HSA2 = 'hsa2'


@dataclass
class Credentials:
    """Apple ID and password, used once for the sign-in request."""
    apple_id: str
    password: str = field(repr=False)


@dataclass
class SignInResult:
    """Outcome of the sign-in request."""
    session: Session
    auth_type: Optional[str] = None

    @property
    def requires_second_factor(self) -> bool:
        return self.auth_type == AUTH_TYPE_HSA2


def _error_message(data: Any, default: str) -> str:
    """Pull the server's message out of an error body, if any."""
    if isinstance(data, dict):
        errors = data.get('serviceErrors')
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get('message') or errors[0].get('code') or default
        for key in ('error', 'reason', 'message'):
            if isinstance(data.get(key), str):
                return data[key]
    return default


class AuthService:
    """
    Asynchronous authentication service.

    Example:
        >>> auth = AuthService(transport)
        >>> result = await auth.sign_in(Credentials(apple_id, password))
        >>> if result.requires_second_factor:
        ...     await auth.verify_second_factor(result.session, code)
        >>> profile = await auth.exchange_token(result.session)
    """

    def __init__(self, transport: AsyncTransport):
        """
        Initialize auth service.

        Args:
            transport: Transport carrying the cookie jar for this sign-in
        """
        self._transport = transport
        self._config = transport.config
        self._logger = get_logger('nefos.auth')

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    def _auth_url(self, path: str) -> str:
        return f"{self._config.auth_endpoint}{path}"

    def _session_headers(self, session: Session):
        return h.get_session_headers(
            session.client_id,
            session.scnt,
            session.session_id,
            self._config.home_endpoint
        )

    async def sign_in(
        self,
        credentials: Credentials,
        client_id: Optional[str] = None
    ) -> SignInResult:
        """
        Sign in with Apple ID and password.

        Args:
            credentials: Apple ID and password
            client_id: Client instance id (generated if not provided)

        Returns:
            SignInResult with the captured session

        Raises:
            AuthenticationError: If the credentials are rejected
            ProtocolError: If a required session header is missing
            TransportError: If the request fails
        """
        client_id = client_id or new_client_id()
        body = {
            'accountName': credentials.apple_id,
            'password': credentials.password,
            'rememberMe': True,
            'trustTokens': [],
        }

        self._logger.info(f"Signing in as {credentials.apple_id}")
        response = await self._transport.post(
            self._auth_url('/signin?isRememberMeEnabled=true'),
            json=body,
            headers=h.get_auth_headers(client_id, self._config.home_endpoint)
        )

        data = response.json_or_none()
        auth_type = data.get('authType') if isinstance(data, dict) else None

        if not response.ok and auth_type != AUTH_TYPE_HSA2:
            raise AuthenticationError(
                f"Sign-in rejected: {_error_message(data, f'HTTP {response.status}')}",
                status_code=response.status,
                response_data=data
            )

        session = Session(
            client_id=client_id,
            session_id=self._require_header(response, h.SESSION_ID),
            session_token=self._require_header(response, h.SESSION_TOKEN),
            scnt=response.header(h.SCNT) or '',
            account_country=response.header(h.ACCOUNT_COUNTRY) or h.DEFAULT_ACCOUNT_COUNTRY,
        )
        self._logger.debug(
            f"Captured session {redact(session.session_id)}, "
            f"token {redact(session.session_token)}, country {session.account_country}"
        )

        if auth_type == AUTH_TYPE_HSA2:
            self._logger.info("Two-factor authentication required")
        elif auth_type:
            # Other second-factor channels (SMS, device list) are not supported
            self._logger.debug(f"Ignoring authType {auth_type!r}")

        return SignInResult(session=session, auth_type=auth_type)

    def _require_header(self, response: TransportResponse, name: str) -> str:
        value = response.header(name)
        if not value:
            raise ProtocolError(
                f"Sign-in response is missing the {name} header",
                field=name,
                status_code=response.status
            )
        return value

    async def verify_second_factor(self, session: Session, code: str) -> None:
        """
        Submit a trusted-device code and ask the server to trust this session.

        Args:
            session: Session captured by sign_in
            code: One-time code shown on the trusted device

        Raises:
            AuthenticationError: If the code or the trust request is rejected
            TransportError: If a request fails
        """
        response = await self._transport.post(
            self._auth_url('/verify/trusteddevice/securitycode'),
            json={'securityCode': {'code': code}},
            headers=self._session_headers(session)
        )
        if not response.ok:
            data = response.json_or_none()
            raise AuthenticationError(
                f"Security code rejected: {_error_message(data, f'HTTP {response.status}')}",
                status_code=response.status,
                response_data=data
            )
        self._logger.info("Security code accepted")

        await self.trust_session(session)

    async def trust_session(self, session: Session) -> None:
        """
        Request a trust token for this session.

        Captures X-Apple-TwoSV-Trust-Token and a refreshed
        X-Apple-Session-Token when the server sends them.

        Raises:
            AuthenticationError: If the trust request is rejected
            TransportError: If the request fails
        """
        response = await self._transport.post(
            self._auth_url('/2sv/trust'),
            headers=self._session_headers(session)
        )
        if not response.ok:
            data = response.json_or_none()
            raise AuthenticationError(
                f"Trust request rejected: {_error_message(data, f'HTTP {response.status}')}",
                status_code=response.status,
                response_data=data
            )

        trust_token = response.header(h.TRUST_TOKEN)
        if trust_token:
            session.trust_token = [trust_token]
            self._logger.info("Session trusted")

        session_token = response.header(h.SESSION_TOKEN)
        if session_token:
            session.session_token = session_token

    async def exchange_token(self, session: Session, resuming: bool = False) -> AccountProfile:
        """
        Exchange the session token for the account profile.

        Args:
            session: Session with a session token
            resuming: True when validating a restored session

        Returns:
            AccountProfile

        Raises:
            SessionExpiredError: If resuming and the token is refused
            AuthenticationError: If signing in and the token is refused
            AccountProfileError: If the profile has an unexpected shape
            TransportError: If the request fails
        """
        body = {
            'accountCountryCode': session.account_country,
            'dsWebAuthToken': session.session_token,
            'extended_login': True,
            'trustToken': list(session.trust_token),
        }

        response = await self._transport.post(
            f"{self._config.setup_endpoint}/accountLogin",
            json=body
        )

        if not response.ok:
            data = response.json_or_none()
            message = _error_message(data, f"HTTP {response.status}")
            if resuming:
                raise SessionExpiredError(
                    f"Saved session was refused: {message}",
                    status_code=response.status
                )
            raise AuthenticationError(
                f"Token exchange rejected: {message}",
                status_code=response.status,
                response_data=data
            )

        profile = AccountProfile.from_dict(response.json())
        self._logger.info(f"Authenticated as {profile.name}")
        return profile

    async def authenticate_app(self, apple_id: str, password: str, app_name: str) -> None:
        """
        Log in to a single iCloud application with credentials.

        The response body is not used.

        Raises:
            AuthenticationError: If the login is rejected
            TransportError: If the request fails
        """
        response = await self._transport.post(
            f"{self._config.setup_endpoint}/accountLogin",
            json={
                'appName': app_name,
                'apple_id': apple_id,
                'password': password,
            }
        )
        if not response.ok:
            data = response.json_or_none()
            raise AuthenticationError(
                f"Login to {app_name} rejected: {_error_message(data, f'HTTP {response.status}')}",
                status_code=response.status,
                response_data=data
            )
