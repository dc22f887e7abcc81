"""
Authentication state machine.

    sign_in() ──► Authenticated(service)
        │
        └──────► AwaitingSecondFactor ──submit_code()──► ICloudService

    resume(blob) ──► ICloudService        (token exchange only)

sign_in() returns one of two AuthState variants. The pending variant has
no usable service: reading AwaitingSecondFactor.service raises
SecondFactorRequiredError, so a pending challenge cannot be mistaken for
a signed-in session.

Example:
    >>> state = await sign_in(apple_id, password, config)
    >>> if isinstance(state, AwaitingSecondFactor):
    ...     icloud = await state.submit_code(input("Code: "))
    ... else:
    ...     icloud = state.service
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import aiofiles

from .core.api import APIConfig, AsyncTransport, AuthService, Credentials
from .core.exceptions import SecondFactorRequiredError
from .core.logging import get_logger
from .core.session import Session
from .service import ICloudService

logger = get_logger('nefos.auth')


class AuthState(ABC):
    """Result of sign_in(): Authenticated or AwaitingSecondFactor."""

    requires_2fa: bool = False

    @property
    @abstractmethod
    def service(self) -> ICloudService:
        """Signed-in service handle."""


class Authenticated(AuthState):
    """Sign-in finished without a second factor."""

    requires_2fa = False

    def __init__(self, service: ICloudService):
        self._service = service

    def __repr__(self) -> str:
        return f"<Authenticated {self._service.email!r}>"

    @property
    def service(self) -> ICloudService:
        return self._service


class AwaitingSecondFactor(AuthState):
    """
    Sign-in is waiting for a trusted-device code.

    Holds the session captured so far and the transport whose cookie jar
    carries the sign-in cookies. Dropping this object abandons the
    sign-in; call close() to release the transport.
    """

    requires_2fa = True

    def __init__(self, session: Session, transport: AsyncTransport):
        self._session = session
        self._transport = transport

    def __repr__(self) -> str:
        return f"<AwaitingSecondFactor client_id={self._session.client_id!r}>"

    @property
    def session(self) -> Session:
        return self._session

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    @property
    def service(self) -> ICloudService:
        raise SecondFactorRequiredError(
            "Two-factor authentication is pending; call submit_code() first"
        )

    async def submit_code(self, code: str) -> ICloudService:
        """
        Verify the one-time code, trust the session and fetch the profile.

        A rejected code leaves this state usable, so the caller may retry.

        Raises:
            AuthenticationError: If the code, trust or token exchange is rejected
            AccountProfileError: If the profile has an unexpected shape
            TransportError: If a request fails
        """
        auth = AuthService(self._transport)
        await auth.verify_second_factor(self._session, code.strip())
        profile = await auth.exchange_token(self._session)
        return ICloudService(self._session, self._transport, profile)

    async def close(self) -> None:
        """Abandon the sign-in and close the transport."""
        await self._transport.close()


SignInState = Union[Authenticated, AwaitingSecondFactor]


async def sign_in(
    apple_id: str,
    password: str,
    config: Optional[APIConfig] = None,
    *,
    client_id: Optional[str] = None,
    transport: Optional[AsyncTransport] = None
) -> SignInState:
    """
    Sign in with credentials.

    Args:
        apple_id: Apple ID
        password: Password (not retained after the request)
        config: Client configuration
        client_id: Client instance id (generated if not provided)
        transport: Transport to use (created from config if not provided)

    Returns:
        Authenticated or AwaitingSecondFactor

    Raises:
        AuthenticationError: If the credentials are rejected
        ProtocolError: If the response lacks session headers
        AccountProfileError: If the profile has an unexpected shape
        TransportError: If a request fails
    """
    owns_transport = transport is None
    transport = transport or AsyncTransport(config)
    auth = AuthService(transport)

    try:
        result = await auth.sign_in(Credentials(apple_id, password), client_id)
        if result.requires_second_factor:
            return AwaitingSecondFactor(result.session, transport)

        profile = await auth.exchange_token(result.session)
    except BaseException:
        if owns_transport:
            await transport.close()
        raise

    return Authenticated(ICloudService(result.session, transport, profile))


async def resume(
    blob: str,
    config: Optional[APIConfig] = None,
    *,
    transport: Optional[AsyncTransport] = None
) -> ICloudService:
    """
    Resume a serialized session.

    Only the token exchange is performed; it both validates the session
    and refreshes the account profile. There is no fallback to a fresh
    sign-in here.

    Raises:
        SessionDecodeError: If the blob is corrupt or partial
        SessionExpiredError: If the server refuses the saved session
        AccountProfileError: If the profile has an unexpected shape
        TransportError: If the request fails
    """
    return await resume_session(Session.from_json(blob), config, transport=transport)


async def resume_session(
    session: Session,
    config: Optional[APIConfig] = None,
    *,
    transport: Optional[AsyncTransport] = None
) -> ICloudService:
    """Resume a decoded session (see resume())."""
    owns_transport = transport is None
    transport = transport or AsyncTransport(config)

    try:
        profile = await AuthService(transport).exchange_token(session, resuming=True)
    except BaseException:
        if owns_transport:
            await transport.close()
        raise

    logger.info(f"Resumed session for {profile.email}")
    return ICloudService(session, transport, profile)


async def resume_from_file(
    path: Union[str, Path],
    config: Optional[APIConfig] = None,
    *,
    transport: Optional[AsyncTransport] = None
) -> ICloudService:
    """Resume a session blob stored in a file (see resume())."""
    async with aiofiles.open(path, 'r', encoding='utf-8') as f:
        blob = await f.read()
    return await resume(blob, config, transport=transport)
