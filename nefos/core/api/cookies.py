"""
Cookie jar persistence.

The jar is dumped as JSON keyed by domain, then path, then cookie name:

    {
        "icloud.com": {
            "/": {
                "X-APPLE-WEBAUTH-USER": {"value": "...", "expires": "...",
                                         "secure": true, "httponly": true}
            }
        },
        "idmsa.apple.com": {
            "/": {
                "aasp": {"value": "...", "host_only": true}
            }
        }
    }

Expiry is always stored as an absolute `expires` date: a Max-Age is
converted using the time the jar received the cookie. Host-only cookies
are flagged and reloaded without a Domain attribute, so they are still
sent to their own host only.

Loading is all-or-nothing and saving overwrites the whole file.
"""
import json
import time
from email.utils import formatdate
from http.cookies import SimpleCookie, CookieError, Morsel
from pathlib import Path
from typing import Dict, Any, Iterable, List, Mapping, Optional, Tuple, Union

import aiofiles
from aiohttp import CookieJar
from yarl import URL

from ..exceptions import CookieStoreError
from ..logging import get_logger

CookieDump = Dict[str, Dict[str, Dict[str, Dict[str, Any]]]]
CookieKey = Tuple[str, str, str]

_OPTIONAL_ATTRIBUTES = ('expires', 'samesite')

logger = get_logger('nefos.cookies')


def _default_path(response_url: URL) -> str:
    path = response_url.path
    if not path.startswith('/'):
        return '/'
    return '/' + path[1:path.rfind('/')]


class PersistentCookieJar(CookieJar):
    """
    CookieJar that remembers what a JSON dump needs to reproduce it.

    For every cookie it records whether it is host-only and, when it came
    with a Max-Age, the absolute time it expires.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._scopes: Dict[CookieKey, Tuple[bool, Optional[float]]] = {}

    def _remember(self, cookies: Iterable[Tuple[str, Any]], response_url: URL) -> None:
        hostname = response_url.raw_host
        now = time.time()
        for name, cookie in cookies:
            if not isinstance(cookie, Morsel):
                tmp: SimpleCookie = SimpleCookie()
                tmp[name] = cookie
                cookie = tmp[name]

            domain = cookie['domain']
            if domain.endswith('.'):
                domain = ''
            domain = domain[1:] if domain.startswith('.') else domain
            host_only = not domain and hostname is not None
            if host_only:
                domain = hostname

            path = cookie['path']
            if not path or not path.startswith('/'):
                path = _default_path(response_url)

            deadline = None
            if cookie['max-age']:
                try:
                    deadline = now + max(int(cookie['max-age']), 0)
                except ValueError:
                    deadline = None
            self._scopes[(domain or '', path, name)] = (host_only, deadline)

    def update_cookies(self, cookies, response_url: URL = URL()) -> None:
        items = list(cookies.items() if isinstance(cookies, Mapping) else cookies)
        self._remember(items, response_url)
        super().update_cookies(items, response_url)

    def update_cookies_from_headers(self, headers, response_url: URL) -> None:
        for header in headers:
            parsed: SimpleCookie = SimpleCookie()
            try:
                parsed.load(header)
            except CookieError:
                # aiohttp's parser is more lenient; such a cookie is stored without a recorded scope
                logger.debug(f"Could not parse Set-Cookie header from {response_url.host}")
                continue
            self._remember(parsed.items(), response_url)
        super().update_cookies_from_headers(headers, response_url)

    def scope(self, morsel: Morsel) -> Tuple[bool, Optional[float]]:
        """(host_only, absolute Max-Age deadline or None) of a stored cookie."""
        return self._scopes.get((morsel['domain'], morsel['path'], morsel.key), (False, None))


def _jar_scope(jar: CookieJar, morsel: Morsel) -> Tuple[bool, Optional[float]]:
    """Scope of a cookie held by a plain aiohttp jar, from its own bookkeeping."""
    domain, path, name = morsel['domain'], morsel['path'], morsel.key
    keys = ((domain, path, name), (domain, path.rstrip('/'), name), (domain, name))
    host_only_set = getattr(jar, 'host_only_cookies', None)
    if host_only_set is None:
        host_only_set = getattr(jar, '_host_only_cookies', ())
    expirations = getattr(jar, '_expirations', {})

    host_only = any(key in host_only_set for key in keys)
    deadline = None
    for key in keys:
        if key in expirations:
            when = expirations[key]
            deadline = when.timestamp() if hasattr(when, 'timestamp') else float(when)
            break
    return host_only, deadline


def dump_jar(jar: CookieJar) -> CookieDump:
    """Snapshot every live cookie of the jar as a nested dict."""
    dump: CookieDump = {}
    for morsel in jar:
        if isinstance(jar, PersistentCookieJar):
            host_only, deadline = jar.scope(morsel)
        else:
            host_only, deadline = _jar_scope(jar, morsel)

        if morsel['max-age'] and deadline is None:
            logger.debug(f"Skipping cookie {morsel.key!r}: expiry unknown")
            continue

        domain = morsel['domain']
        path = morsel['path'] or '/'
        entry: Dict[str, Any] = {
            'value': morsel.value,
            'secure': bool(morsel['secure']),
            'httponly': bool(morsel['httponly']),
        }
        if host_only:
            entry['host_only'] = True
        for attribute in _OPTIONAL_ATTRIBUTES:
            if morsel[attribute]:
                entry[attribute] = str(morsel[attribute])
        if deadline is not None:
            entry['expires'] = formatdate(deadline, usegmt=True)
        dump.setdefault(domain, {}).setdefault(path, {})[morsel.key] = entry
    return dump


def _build_cookies(dump: Any) -> List[Tuple[URL, SimpleCookie]]:
    """Validate a dump and turn it into (origin, cookies) batches."""
    if not isinstance(dump, dict):
        raise CookieStoreError("Cookie store must be a JSON object")

    batches = []
    for domain, paths in dump.items():
        if not domain.strip('.'):
            raise CookieStoreError("Cookie store entry without a domain")
        if not isinstance(paths, dict):
            raise CookieStoreError(f"Malformed cookie store entry for {domain}", field=domain)
        for path, cookies in paths.items():
            if not isinstance(cookies, dict):
                raise CookieStoreError(f"Malformed cookie store entry for {domain}{path}", field=path)
            if not path.startswith('/'):
                raise CookieStoreError(f"Invalid cookie path {path!r} for {domain}", field=path)
            jar_cookies: SimpleCookie = SimpleCookie()
            for name, entry in cookies.items():
                if not isinstance(entry, dict) or not isinstance(entry.get('value'), str):
                    raise CookieStoreError(f"Malformed cookie {name!r} for {domain}", field=name)
                try:
                    jar_cookies[name] = entry['value']
                except CookieError as e:
                    raise CookieStoreError(f"Invalid cookie {name!r}: {e}", field=name) from e
                morsel = jar_cookies[name]
                # Without a Domain attribute the jar scopes the cookie to the origin host
                if not entry.get('host_only'):
                    morsel['domain'] = domain
                morsel['path'] = path
                if entry.get('secure'):
                    morsel['secure'] = True
                if entry.get('httponly'):
                    morsel['httponly'] = True
                for attribute in _OPTIONAL_ATTRIBUTES:
                    if entry.get(attribute):
                        morsel[attribute] = entry[attribute]
            batches.append((URL.build(scheme='https', host=domain.lstrip('.'), path=path), jar_cookies))
    return batches


def load_into_jar(jar: CookieJar, dump: Any) -> int:
    """
    Load a dump into the jar.

    Nothing is added to the jar unless the whole dump is valid.

    Returns:
        Number of cookies loaded
    """
    batches = _build_cookies(dump)
    count = 0
    for origin, cookies in batches:
        jar.update_cookies(cookies, response_url=origin)
        count += len(cookies)
    return count


class CookieStore:
    """
    JSON file holding a cookie jar.

    Example:
        >>> store = CookieStore(config.cookie_file)
        >>> await store.load(jar)
        >>> ...
        >>> await store.save(jar)
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._logger = get_logger('nefos.cookies')

    @property
    def path(self) -> Path:
        """Get cookie file path."""
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    async def load(self, jar: CookieJar) -> int:
        """
        Load the stored cookies into jar.

        A missing file leaves the jar empty.

        Returns:
            Number of cookies loaded

        Raises:
            CookieStoreError: If the file is not a valid cookie dump
        """
        if not self.exists():
            self._logger.debug(f"No cookie store at {self._path}, starting empty")
            return 0

        async with aiofiles.open(self._path, 'r', encoding='utf-8') as f:
            raw = await f.read()

        try:
            dump = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CookieStoreError(f"Cookie store {self._path} is not valid JSON: {e}") from e

        count = load_into_jar(jar, dump)
        self._logger.debug(f"Loaded {count} cookies from {self._path}")
        return count

    async def save(self, jar: CookieJar) -> int:
        """
        Overwrite the store with the current jar contents.

        Returns:
            Number of cookies saved
        """
        dump = dump_jar(jar)
        self._path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(self._path, 'w', encoding='utf-8') as f:
            await f.write(json.dumps(dump, indent=2, sort_keys=True))

        count = sum(len(cookies) for paths in dump.values() for cookies in paths.values())
        self._logger.debug(f"Saved {count} cookies to {self._path}")
        return count

    def delete(self) -> None:
        """Delete the cookie file."""
        if self.exists():
            self._path.unlink()
