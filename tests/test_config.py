"""
Settings and logging configuration tests
"""

import logging
import pytest
from pydantic import ValidationError

from saas_template.config import Settings
from saas_template.utils.logger import DEFAULT_LOGGING_CONFIG, load_logging_config, setup_logging


class TestSettings:
    def test_app_url_trailing_slash(self):
        assert Settings(app_url="https://example.com/").app_url == "https://example.com"

    def test_cookie_options(self):
        options = Settings(environment="development").cookie_options()
        assert options == {'path': '/', 'secure': False, 'samesite': 'lax', 'max_age': 60 * 60 * 24 * 30}
        assert Settings(environment="production").cookie_options()['secure'] is True

    def test_price_lookup(self):
        settings = Settings(stripe_price_pro_monthly="price_123", stripe_price_enterprise_yearly="")
        assert settings.price_id_for("pro", "monthly") == "price_123"
        assert settings.price_id_for("enterprise", "yearly") == ""

    def test_negative_initial_credits(self):
        with pytest.raises(ValidationError):
            Settings(initial_credits=-1)


class TestLoggingConfig:
    def test_missing_file_uses_default(self, tmp_path):
        config = load_logging_config(str(tmp_path / "missing.yaml"))
        assert config == DEFAULT_LOGGING_CONFIG
        assert config is not DEFAULT_LOGGING_CONFIG

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "logging.yaml"
        path.write_text(
            "version: 1\n"
            "disable_existing_loggers: false\n"
            "handlers:\n"
            "  console:\n"
            "    class: logging.StreamHandler\n"
            "root:\n"
            "  level: WARNING\n"
            "  handlers: [console]\n"
        )

        config = setup_logging(str(path), log_level="debug")

        assert config['root']['level'] == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_format_override(self):
        config = setup_logging(log_format="json")
        assert config['handlers']['console']['formatter'] == "json"
