"""Tests for provider failure notification sinks."""

import logging
from unittest.mock import MagicMock

from mrblame.providers.errors import ProviderError, ProviderErrorKind
from mrblame.resolution import LoggingNotificationSink
from mrblame.resolution.notifications import format_error, guidance_for

LOGGER = "mrblame.resolution.notifications"


def make_provider(name="GitLab"):
    provider = MagicMock()
    provider.display_name = name
    return provider


class TestLoggingNotificationSink:
    def test_notifiable_error_logged_as_warning(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER)
        error = ProviderError(
            kind=ProviderErrorKind.NO_CREDENTIAL,
            message="No Personal Access Token configured",
            should_notify_user=True,
        )

        LoggingNotificationSink().notify(error, make_provider())

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "[GitLab] Change request lookup failed" in record.getMessage()
        assert "personal access token" in record.getMessage()

    def test_repeat_error_logged_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER)
        error = ProviderError(
            kind=ProviderErrorKind.RATE_LIMITED,
            message="API rate limited",
            status_code=429,
        )

        LoggingNotificationSink().notify(error, make_provider("GitHub"))

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert "(HTTP 429)" in record.getMessage()


class TestNotificationFormatting:
    def test_format_error(self):
        error = ProviderError(kind=ProviderErrorKind.NOT_FOUND, message="gone", status_code=404)

        assert format_error(error, make_provider(), "Lookup") == "[GitLab] Lookup: gone (HTTP 404)"

    def test_guidance_only_for_credential_problems(self):
        provider = make_provider("GitHub")
        invalid = ProviderError(kind=ProviderErrorKind.INVALID_CREDENTIAL, message="x")
        network = ProviderError(kind=ProviderErrorKind.NETWORK_ERROR, message="x")

        assert "GitHub token was rejected" in guidance_for(invalid, provider)
        assert guidance_for(network, provider) is None
