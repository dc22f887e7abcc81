"""
ICloudClient - resume-or-sign-in client for iCloud.

Example:
    >>> async with ICloudClient(APIConfig.in_directory("~/.config/nefos")) as icloud:
    ...     print(icloud.service.name)
"""
import asyncio
import getpass
import inspect
from typing import Optional, Callable, Awaitable, Union, Tuple

from .auth import sign_in, resume_session, AwaitingSecondFactor
from .core.api import APIConfig, CookieStore
from .core.exceptions import SessionDecodeError, SessionExpiredError
from .core.logging import get_logger
from .core.session import SessionStorage, FileSession
from .service import ICloudService

CodeCallback = Callable[[], Union[str, Awaitable[str]]]


class ICloudClient:
    """
    High-level client with session persistence.

    start() resumes the stored session when the server still accepts it.
    Otherwise it signs in with credentials, asks for the two-factor code
    when needed, then stores the new session and the cookie jar.

        >>> client = ICloudClient()
        >>> icloud = await client.start()   # prompts for Apple ID, password, code
        >>> # Session saved to ~/.config/nefos/session.json
    """

    def __init__(
        self,
        config: Optional[APIConfig] = None,
        storage: Optional[SessionStorage] = None,
        *,
        apple_id: Optional[str] = None,
        password: Optional[str] = None,
        code_callback: Optional[CodeCallback] = None
    ):
        """
        Initialize iCloud client.

        Args:
            config: Client configuration
            storage: Session storage (defaults to a JSON file in config_dir)
            apple_id: Apple ID for a fresh sign-in
            password: Password for a fresh sign-in
            code_callback: Returns the two-factor code (defaults to a console prompt)
        """
        self._config = config or APIConfig.default()
        self._storage = storage or FileSession(self._config.session_file)
        self._apple_id = apple_id
        self._password = password
        self._code_callback = code_callback
        self._service: Optional[ICloudService] = None
        self._logger = get_logger('nefos.client')

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    @property
    def service(self) -> ICloudService:
        """
        The authenticated service.

        Raises:
            RuntimeError: If start() has not completed
        """
        if self._service is None:
            raise RuntimeError("Client not started")
        return self._service

    @property
    def is_logged_in(self) -> bool:
        return self._service is not None

    async def start(
        self,
        apple_id: Optional[str] = None,
        password: Optional[str] = None
    ) -> ICloudService:
        """
        Resume the stored session or sign in.

        Args:
            apple_id: Optional Apple ID (skips prompt)
            password: Optional password (skips prompt)

        Returns:
            Authenticated service
        """
        if self._service is not None:
            return self._service

        service = await self._try_resume()
        if service is None:
            if apple_id:
                self._apple_id = apple_id
            if password:
                self._password = password
            service = await self._do_sign_in()

        self._service = service
        return service

    async def _try_resume(self) -> Optional[ICloudService]:
        """Resume the stored session, or None if there is none or it is stale."""
        if not self._storage.exists():
            return None

        try:
            session = self._storage.load()
        except SessionDecodeError as e:
            self._logger.warning(f"Discarding unreadable session: {e}")
            self._storage.delete()
            return None

        if session is None or not session.is_valid():
            return None

        try:
            return await resume_session(session, self._config)
        except SessionExpiredError as e:
            self._logger.warning(f"Stored session expired, signing in again: {e}")
            self._storage.delete()
            return None

    async def _do_sign_in(self) -> ICloudService:
        """Fresh sign-in; saves session and cookies."""
        apple_id, password = await self._prompt_credentials()
        state = await sign_in(apple_id, password, self._config)
        self._password = None

        if isinstance(state, AwaitingSecondFactor):
            try:
                code = await self._get_code()
                service = await state.submit_code(code)
            except BaseException:
                await state.close()
                raise
        else:
            service = state.service

        try:
            service.save_session(self._storage)
            await service.save_cookies()
        except BaseException:
            await service.close()
            raise
        self._logger.info(f"Logged in as {service.name}")
        return service

    async def _prompt_credentials(self) -> Tuple[str, str]:
        """Prompt for missing credentials."""
        loop = asyncio.get_running_loop()

        apple_id = self._apple_id
        password = self._password

        if not apple_id:
            apple_id = await loop.run_in_executor(None, input, "Apple ID: ")
        if not password:
            password = await loop.run_in_executor(None, getpass.getpass, "Password: ")

        return apple_id.strip(), password

    async def _get_code(self) -> str:
        """Get the two-factor code from the callback or the console."""
        if self._code_callback is not None:
            code = self._code_callback()
            if inspect.isawaitable(code):
                code = await code
            return code

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, input, "Two-factor code: ")

    async def log_out(self) -> None:
        """Forget the stored session and cookies and close."""
        self._storage.delete()
        if self._service is not None:
            self._service.transport.cookie_store.delete()
        else:
            CookieStore(self._config.cookie_file).delete()
        await self.close()

    async def close(self) -> None:
        """Close the service and the storage."""
        if self._service is not None:
            await self._service.close()
            self._service = None
        self._storage.close()

    async def __aenter__(self) -> 'ICloudClient':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
