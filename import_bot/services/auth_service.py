"""Sign-in for the import run: automated form fill, operator-completed login."""

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Tuple

from loguru import logger

from ..constants import AUTHENTICATED_URL_PATTERNS, Delays
from ..core.exceptions import AuthenticationError, InterventionTimeoutError
from ..core.retry import RetryExecutor, navigation_policy
from ..resilience.intervention import InterventionCoordinator, is_authenticated_url
from ..selector.catalog import SelectorCatalog
from ..selector.resolver import SelectorResolver

if TYPE_CHECKING:
    from ..browser.session import BrowserSession
    from ..core.config.settings import ImportSettings
    from ..resilience.diagnostics import DiagnosticCapture


class AuthService:
    """Signs in once per run; every failure here is fatal for the run."""

    def __init__(
        self,
        session: "BrowserSession",
        resolver: SelectorResolver,
        executor: RetryExecutor,
        catalog: SelectorCatalog,
        interventions: InterventionCoordinator,
        settings: "ImportSettings",
        diagnostics: Optional["DiagnosticCapture"] = None,
        settle: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.session = session
        self.resolver = resolver
        self.executor = executor
        self.catalog = catalog
        self.interventions = interventions
        self.settings = settings
        self.diagnostics = diagnostics
        self._settle = settle or asyncio.sleep

    async def authenticate(self) -> None:
        """
        Open the login page, fill credentials and wait for the operator to sign in.

        Raises:
            AuthenticationError: If the login page cannot be opened or sign-in
                does not complete within the authentication window
            InterventionCancelledError: If a stop signal arrives while waiting
        """
        username, password = self.settings.credentials()
        base_url = self.settings.base_url
        logger.info(f"🔐 Navigating to login page: {base_url}")

        async def open_login() -> None:
            await self.session.navigate(base_url, self.settings.navigation_timeout / 1000)

        outcome = await self.executor.execute(
            open_login, navigation_policy(self.settings.max_retries), "navigate to login page"
        )
        if outcome.is_failure():
            raise AuthenticationError(
                f"Failed to navigate to login page: {outcome.error.message}",
                context={"base_url": base_url, "attempts": outcome.attempts},
            ) from outcome.error

        if is_authenticated_url(await self.session.current_location()):
            logger.info("✅ Already authenticated")
            return

        await self._fill_credentials(username, password)

        try:
            await self.interventions.wait_for_authentication(
                self.session,
                patterns=AUTHENTICATED_URL_PATTERNS,
                max_wait_time=self.settings.auth_timeout / 1000,
                check_interval=self.settings.auth_check_interval / 1000,
                resolver=self.resolver,
                marker=self.catalog.get("dashboard.authenticated_marker"),
            )
        except InterventionTimeoutError as e:
            raise AuthenticationError(
                "Authentication timeout - sign-in was not completed in time",
                context={"username": username, "timeout": e.max_wait_time},
            ) from e

        logger.info("✅ Authentication completed")
        await self._settle(Delays.AFTER_LOGIN)
        if self.diagnostics is not None:
            await self.diagnostics.capture("01-login-complete")

    async def _fill_credentials(self, username: str, password: str) -> None:
        """Type credentials into the login form; failure leaves typing to the operator."""
        timeout = self.settings.browser_timeout / 1000
        policy = self.settings.retry_policy()

        for path, value, label in self._fields(username, password):
            spec = self.catalog.get(path)

            async def type_value(spec=spec, value=value) -> None:
                handle = (await self.resolver.resolve(spec, timeout)).unwrap()
                await self.session.type(handle, value)

            outcome = await self.executor.execute(type_value, policy, label)
            if outcome.is_failure():
                logger.warning(
                    "⚠️ Could not fill credentials automatically - please enter them manually"
                )
                return

        logger.info("✅ Credentials filled automatically")

    @staticmethod
    def _fields(username: str, password: str) -> Tuple[Tuple[str, str, str], ...]:
        return (
            ("login.email_input", username, "enter email"),
            ("login.password_input", password, "enter password"),
        )

