import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PAYMENTS_WORKERS", raising=False)
    monkeypatch.delenv("PAYMENTS_LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.workers == 1
        assert settings.log_level == "WARNING"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_WORKERS", "6")
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "debug")

        settings = get_settings()
        assert settings.workers == 6
        assert settings.log_level == "debug"

    def test_by_field_name(self):
        assert Settings(workers=3).workers == 3

    def test_rejects_zero_workers(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_WORKERS", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_cached(self):
        assert get_settings() is get_settings()
