"""
ICloudService - handle to an authenticated iCloud session.

Example:
    >>> async with await nefos.resume(blob, config) as icloud:
    ...     print(icloud.name)
    ...     events = await icloud.fetch_calendars("America/Chicago", "2023-11-01", "2023-11-30")
    ...     await icloud.save_cookies()
"""
from typing import Optional

from .core.account import AccountProfile
from .core.api import AsyncTransport, AuthService
from .core.services import CalendarService
from .core.session import Session, SessionStorage
from .core.logging import get_logger


class ICloudService:
    """
    Authenticated session, its transport and the account profile.

    Cookies and the session blob are only persisted when asked to.
    """

    def __init__(
        self,
        session: Session,
        transport: AsyncTransport,
        profile: AccountProfile
    ):
        self._session = session
        self._transport = transport
        self._profile = profile
        self._calendar: Optional[CalendarService] = None
        self._logger = get_logger('nefos.service')

    def __repr__(self) -> str:
        return f"<ICloudService {self._profile.email!r}>"

    @property
    def session(self) -> Session:
        return self._session

    @property
    def profile(self) -> AccountProfile:
        return self._profile

    @property
    def transport(self) -> AsyncTransport:
        return self._transport

    @property
    def name(self) -> str:
        """Full name of the account holder."""
        return self._profile.name

    @property
    def email(self) -> str:
        """Primary email of the account."""
        return self._profile.email

    def webservice_url(self, name: str) -> str:
        """
        Base URL of a service discovered in the profile.

        Raises:
            KeyError: If the service is not in the profile
        """
        return self._profile.service(name).url

    @property
    def calendar(self) -> CalendarService:
        if self._calendar is None:
            self._calendar = CalendarService(self._transport, self._profile)
        return self._calendar

    async def fetch_calendars(self, timezone: str, start: str, end: str) -> str:
        """
        Fetch calendar events between two dates as raw text.

        Args:
            timezone: IANA timezone name
            start: Start date, e.g. '2023-11-01'
            end: End date, e.g. '2023-11-30'
        """
        return await self.calendar.fetch_events(timezone, start, end)

    async def authenticate_app(self, apple_id: str, password: str, app_name: str) -> None:
        """Log in to a single iCloud application (e.g. 'calendar') with credentials."""
        await AuthService(self._transport).authenticate_app(apple_id, password, app_name)

    def serialize_session(self) -> str:
        """Session blob to persist for resume()."""
        return self._session.to_json()

    def save_session(self, storage: SessionStorage) -> None:
        """Write the session blob to storage."""
        storage.save(self._session)

    async def save_cookies(self) -> int:
        """
        Write the cookie jar to the configured cookie file.

        Returns:
            Number of cookies saved
        """
        return await self._transport.save_cookies()

    async def close(self) -> None:
        """Close the transport. Unsaved cookies are lost."""
        await self._transport.close()

    async def __aenter__(self) -> 'ICloudService':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
