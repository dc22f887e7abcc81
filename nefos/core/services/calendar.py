"""Calendar service."""
from urllib.parse import urlencode

from ..account import AccountProfile
from ..api.transport import AsyncTransport
from ..exceptions import ServiceError
from ..logging import get_logger


class CalendarService:
    """
    Calendar events of the signed-in account.

    The base URL is the per-account calendar endpoint discovered in the
    account profile.
    """

    def __init__(self, transport: AsyncTransport, profile: AccountProfile):
        self._transport = transport
        self._profile = profile
        self._logger = get_logger('nefos.calendar')

    @property
    def base_url(self) -> str:
        return self._profile.service('calendar').url

    def events_url(self, timezone: str, start: str, end: str) -> str:
        """
        Build the events URL.

        Args:
            timezone: IANA timezone name, e.g. 'America/Chicago'
            start: Start date as accepted by the server (e.g. '2023-11-01')
            end: End date (e.g. '2023-11-30')
        """
        params = [
            ('lang', self._profile.language),
            ('usertz', timezone),
            ('startDate', start),
            ('endDate', end),
        ]
        return f"{self.base_url}/ca/events?{urlencode(params)}"

    async def fetch_events(self, timezone: str, start: str, end: str) -> str:
        """
        Fetch events between two dates.

        Returns:
            Raw response body (JSON text from the service)

        Raises:
            ServiceError: If the service answers with an error status
            TransportError: If the request fails
        """
        url = self.events_url(timezone, start, end)
        response = await self._transport.get(url)

        if not response.ok:
            raise ServiceError(
                f"Calendar request failed with HTTP {response.status}",
                service='calendar',
                status_code=response.status
            )

        self._logger.debug(f"Fetched {len(response.text)} bytes of events")
        return response.text
