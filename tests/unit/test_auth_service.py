"""Tests for AuthService."""

import pytest

from import_bot.constants import Delays
from import_bot.core.enums import ErrorKind
from import_bot.core.exceptions import AuthenticationError, ConfigurationError
from import_bot.core.retry import RetryExecutor
from import_bot.resilience import DiagnosticCapture, InterventionCoordinator
from import_bot.selector import SelectorCatalog, SelectorResolver
from import_bot.services import AuthService

EMAIL = 'input[type="email"]'
PASSWORD = 'input[type="password"]'


async def no_sleep(seconds):
    return None


def build_auth(session, settings, diagnostics=None, settle=no_sleep):
    return AuthService(
        session,
        SelectorResolver(session),
        RetryExecutor(sleep=no_sleep),
        SelectorCatalog(),
        InterventionCoordinator(),
        settings,
        diagnostics,
        settle=settle,
    )


class TestAuthService:
    """Tests for AuthService.authenticate."""

    @pytest.mark.asyncio
    async def test_fills_credentials_and_waits_for_dashboard(
        self, make_session, settings, tmp_path
    ):
        session = make_session(elements={EMAIL: "email", PASSWORD: "password"})
        diagnostics = DiagnosticCapture(session, tmp_path)
        original_type = session.type

        async def type_and_sign_in(handle, value):
            await original_type(handle, value)
            if handle == "password":
                session.location = "https://app.example.test/dashboard"

        session.type = type_and_sign_in

        settled = []

        async def settle(seconds):
            settled.append(seconds)

        await build_auth(session, settings, diagnostics, settle=settle).authenticate()

        assert session.navigated == ["https://app.example.test"]
        assert session.typed == [("email", "operator@example.com"), ("password", "secret")]
        assert session.images == ["01-login-complete"]
        assert settled == [Delays.AFTER_LOGIN]

    @pytest.mark.asyncio
    async def test_already_authenticated_skips_form(self, make_session, settings):
        session = make_session(elements={EMAIL: "email"})

        async def navigate(url, timeout=1.0):
            session.navigated.append(url)
            session.location = "https://app.example.test/dashboard"

        session.navigate = navigate

        await build_auth(session, settings).authenticate()

        assert session.typed == []

    @pytest.mark.asyncio
    async def test_missing_form_leaves_typing_to_operator(self, make_session, settings):
        session = make_session(elements={'[href*="dashboard"]': "marker"})

        await build_auth(session, settings).authenticate()

        assert session.typed == []

    @pytest.mark.asyncio
    async def test_timeout_is_authentication_error(self, make_session, settings):
        session = make_session(elements={EMAIL: "email", PASSWORD: "password"})

        with pytest.raises(AuthenticationError) as exc_info:
            await build_auth(session, settings).authenticate()

        assert exc_info.value.kind == ErrorKind.AUTHENTICATION
        assert exc_info.value.context["timeout"] == settings.auth_timeout / 1000

    @pytest.mark.asyncio
    async def test_unreachable_login_page(self, make_session, settings):
        session = make_session()

        async def navigate(url, timeout=1.0):
            raise ConnectionError("net::ERR_NAME_NOT_RESOLVED")

        session.navigate = navigate

        with pytest.raises(AuthenticationError) as exc_info:
            await build_auth(session, settings).authenticate()

        assert exc_info.value.context["attempts"] == settings.max_retries

    @pytest.mark.asyncio
    async def test_missing_credentials(self, make_session, settings):
        settings.password = None

        with pytest.raises(ConfigurationError):
            await build_auth(make_session(), settings).authenticate()
