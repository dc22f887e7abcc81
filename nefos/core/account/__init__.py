"""Account profile returned at the end of authentication."""
from .models import (
    AccountProfile,
    PersonalInfo,
    WebService,
    REQUIRED_WEBSERVICES,
    EXCLUDED_WEBSERVICES
)

__all__ = [
    'AccountProfile',
    'PersonalInfo',
    'WebService',
    'REQUIRED_WEBSERVICES',
    'EXCLUDED_WEBSERVICES',
]
