import logging

from brandprofile.config import Settings
from brandprofile.logging_conf import configure_logging


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DEBUG_BRANDING", "true")
    monkeypatch.setenv("MAX_BUTTON_CANDIDATES", "40")
    s = Settings()
    assert s.DEBUG_BRANDING is True
    assert s.MAX_BUTTON_CANDIDATES == 40

def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("DEBUG_BRANDING", raising=False)
    s = Settings(_env_file=None)
    assert s.DEBUG_BRANDING is False
    assert s.MAX_LOGO_CANDIDATES == 10

def test_configure_logging_is_idempotent():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        logger = configure_logging("debug")
        configure_logging("debug")
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert root.level == logging.DEBUG
        assert logger.name == "brandprofile"
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        for h in list(root.handlers):
            if h not in before:
                root.removeHandler(h)
        root.setLevel(level)
