import pytest
from pydantic import ValidationError

from odysea.core.settings import Settings, get_settings


def make(**values):
    return Settings(_env_file=None, **values)


def test_app_origin_accepts_comma_separated_string():
    settings = make(APP_ORIGIN="http://localhost:5173, https://odysea.app")
    assert settings.APP_ORIGIN == ["http://localhost:5173", "https://odysea.app"]


@pytest.mark.parametrize("key, enabled", [
    ("", False),
    ("   ", False),
    ("your-gemini-api-key", False),
    ("AIzaSyRealLookingKey", True),
])
def test_live_generation_needs_a_real_key(key, enabled):
    assert make(GEMINI_API_KEY=key).live_generation_enabled is enabled


def test_defaults():
    settings = make()
    assert settings.PORT == 8000
    assert settings.GEMINI_MODEL == "gemini-2.0-flash"
    assert settings.MAX_ITINERARY_DAYS == 30


def test_settings_are_read_only():
    settings = make()
    with pytest.raises(ValidationError):
        settings.PORT = 9000


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
