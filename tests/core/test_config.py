"""Tests for client configuration."""
from cardsync.core.config import DEFAULT_WEB_PROFILE_URL, Environment, Settings


class TestEnvironment:
    """Tests for environment selection."""

    def test__default__is_production(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.environment == Environment.PRODUCTION
        assert settings.is_production is True
        assert settings.is_development is False

    def test__development__from_env_value(self) -> None:
        settings = Settings(_env_file=None, CARDSYNC_ENV="development")

        assert settings.is_development is True


class TestWebProfileUrl:
    """Tests for the web profile base URL."""

    def test__web_profile_url__same_for_both_environments(self) -> None:
        dev = Settings(_env_file=None, CARDSYNC_ENV="development")
        prod = Settings(_env_file=None, CARDSYNC_ENV="production")

        assert dev.web_profile_url == prod.web_profile_url == DEFAULT_WEB_PROFILE_URL

    def test__web_profile_url__override_strips_trailing_slash(self) -> None:
        settings = Settings(_env_file=None, WEB_PROFILE_URL="https://cards.example.com/p/")

        assert settings.web_profile_url == "https://cards.example.com/p"


class TestDefaults:
    """Tests for setting defaults."""

    def test__defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.onboarding_flow_version == "onboarding-flow-v1"
        assert settings.evict_cache_on_sign_out is False
        assert settings.store_namespace == "cardsync:"
        assert settings.api_timeout == 30.0

    def test__evict_cache_on_sign_out__from_env_value(self) -> None:
        settings = Settings(_env_file=None, CARDSYNC_EVICT_CACHE_ON_SIGN_OUT="true")

        assert settings.evict_cache_on_sign_out is True
