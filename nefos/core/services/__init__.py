"""Per-service fetchers built on an authenticated transport."""
from .calendar import CalendarService

__all__ = ['CalendarService']
