"""
Account profile models.

The profile is the body of a successful accountLogin call. Parsing is
strict: every personal-info field and every service in
REQUIRED_WEBSERVICES must be present with the expected type, otherwise
AccountProfileError is raised.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..exceptions import AccountProfileError

REQUIRED_WEBSERVICES: Tuple[str, ...] = (
    'account',
    'archivews',
    'calendar',
    'ckdatabasews',
    'ckdeviceservice',
    'cksharews',
    'contacts',
    'docws',
    'drivews',
    'findme',
    'fmf',
    'geows',
    'iworkexportws',
    'iworkthumbnailws',
    'iwmb',
    'keyvalue',
    'mail',
    'notes',
    'photos',
    'photosupload',
    'push',
    'reminders',
    'schoolwork',
    'settings',
    'streams',
    'ubiquity',
    'uploadimagews',
)

# Present in responses but not shaped like {url, status}
EXCLUDED_WEBSERVICES: Tuple[str, ...] = ('iCloudEnv', 'mccgateway')


def _require(data: Mapping[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise AccountProfileError(f"{where} is missing {key!r}", field=f"{where}.{key}")
    value = data[key]
    # bool is an int subclass; keep the two apart
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise AccountProfileError(
            f"{where}.{key} must be {kind.__name__}, got {type(value).__name__}",
            field=f"{where}.{key}"
        )
    return value


def _require_mapping(data: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(data, dict):
        raise AccountProfileError(f"{where} must be an object", field=where)
    return data


@dataclass(frozen=True)
class PersonalInfo:
    """Account holder details from the dsInfo block."""
    dsid: str
    full_name: str
    first_name: str
    last_name: str
    email: str
    aliases: Tuple[str, ...]
    language_code: str
    locale: str
    country_code: str
    is_managed_apple_id: bool
    is_paid_developer: bool
    locked: bool

    @classmethod
    def from_dict(cls, data: Any) -> 'PersonalInfo':
        """
        Parse a dsInfo object.

        Raises:
            AccountProfileError: If a field is missing or mistyped
        """
        where = 'dsInfo'
        data = _require_mapping(data, where)
        aliases = _require(data, 'appleIdAliases', list, where)
        if not all(isinstance(alias, str) for alias in aliases):
            raise AccountProfileError(f"{where}.appleIdAliases must hold strings", field=f"{where}.appleIdAliases")

        return cls(
            dsid=_require(data, 'dsid', str, where),
            full_name=_require(data, 'fullName', str, where),
            first_name=_require(data, 'firstName', str, where),
            last_name=_require(data, 'lastName', str, where),
            email=_require(data, 'primaryEmail', str, where),
            aliases=tuple(aliases),
            language_code=_require(data, 'languageCode', str, where),
            locale=_require(data, 'locale', str, where),
            country_code=_require(data, 'countryCode', str, where),
            is_managed_apple_id=_require(data, 'isManagedAppleID', bool, where),
            is_paid_developer=_require(data, 'isPaidDeveloper', bool, where),
            locked=_require(data, 'locked', bool, where),
        )


@dataclass(frozen=True)
class WebService:
    """Per-account endpoint of one iCloud service."""
    name: str
    url: str
    status: str
    is_mako_account: Optional[bool] = None

    @property
    def is_active(self) -> bool:
        return self.status == 'active'

    @classmethod
    def from_dict(cls, name: str, data: Any) -> 'WebService':
        """
        Parse one webservices entry.

        Raises:
            AccountProfileError: If url or status is missing or mistyped
        """
        where = f"webservices.{name}"
        data = _require_mapping(data, where)
        is_mako = None
        if 'isMakoAccount' in data:
            is_mako = _require(data, 'isMakoAccount', bool, where)

        return cls(
            name=name,
            url=_require(data, 'url', str, where),
            status=_require(data, 'status', str, where),
            is_mako_account=is_mako,
        )


@dataclass(frozen=True)
class AccountProfile:
    """
    Snapshot of the account returned by accountLogin.

    Attributes:
        info: Personal info (name, email, locale, flags)
        webservices: Service name -> WebService, one per REQUIRED_WEBSERVICES
    """
    info: PersonalInfo
    webservices: Mapping[str, WebService]

    @classmethod
    def from_dict(cls, data: Any) -> 'AccountProfile':
        """
        Parse an accountLogin response body.

        Raises:
            AccountProfileError: On any shape mismatch
        """
        data = _require_mapping(data, 'accountLogin response')
        if 'dsInfo' not in data:
            raise AccountProfileError("Account profile is missing 'dsInfo'", field='dsInfo')
        if 'webservices' not in data:
            raise AccountProfileError("Account profile is missing 'webservices'", field='webservices')

        info = PersonalInfo.from_dict(data['dsInfo'])
        raw_services = _require_mapping(data['webservices'], 'webservices')

        services: Dict[str, WebService] = {}
        for name in REQUIRED_WEBSERVICES:
            if name not in raw_services:
                raise AccountProfileError(
                    f"Account profile is missing service {name!r}",
                    field=f"webservices.{name}"
                )
            services[name] = WebService.from_dict(name, raw_services[name])

        return cls(info=info, webservices=MappingProxyType(services))

    def service(self, name: str) -> WebService:
        """
        Get a service entry.

        Raises:
            KeyError: If the service is not part of the profile
        """
        return self.webservices[name]

    @property
    def name(self) -> str:
        return self.info.full_name

    @property
    def email(self) -> str:
        return self.info.email

    @property
    def language(self) -> str:
        return self.info.language_code
