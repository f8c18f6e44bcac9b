"""
cjbdash - Configuration Tests
=============================
"""

import dataclasses

import pytest

from cjbdash.config import DashboardConfig, load_config


class TestLoadConfig:

    def test_defaults(self):
        cfg = load_config(environ={})
        assert cfg == DashboardConfig()
        assert cfg.sources() == ["http://localhost:3001/api/incidentes"]

    def test_environment_values_are_typed(self):
        cfg = load_config(environ={
            "CJB_REMOTE_URL": " https://example.org/data.json ",
            "CJB_FETCH_TIMEOUT": "3",
            "CJB_AUTO_LOAD": "no",
            "CJB_PAGE_SIZE": "50",
            "CJB_REFRESH_MINUTES": "2.5",
        })
        assert cfg.remote_url == "https://example.org/data.json"
        assert cfg.fetch_timeout == 3.0
        assert cfg.auto_load is False
        assert cfg.page_size == 50
        assert cfg.refresh_minutes == 2.5
        assert cfg.sources() == ["https://example.org/data.json", "http://localhost:3001/api/incidentes"]

    def test_invalid_values_are_ignored(self, caplog):
        cfg = load_config(environ={"CJB_PAGE_SIZE": "muchos", "CJB_AUTO_LOAD": "quizás"})
        assert cfg.page_size == 25
        assert cfg.auto_load is True
        assert "CJB_PAGE_SIZE" in caplog.text

    def test_overrides_win(self):
        cfg = load_config(environ={"CJB_LOCAL_URL": "http://a"}, local_url="http://b", remote_url=None)
        assert cfg.local_url == "http://b"
        assert cfg.remote_url == ""

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            DashboardConfig().page_size = 10
