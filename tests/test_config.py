"""Tests for config.py environment handling."""

import pytest
from jsglobals.config import Config, get_config, reset_config


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test from defaults and a fresh singleton."""
    for name in ('JSGLOBALS_ARROW_ARGUMENTS', 'JSGLOBALS_IGNORE', 'JSGLOBALS_FORMAT', 'JSGLOBALS_SORT'):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


class TestDefaults:
    """Values used when nothing is configured."""

    def test_defaults(self):
        config = Config()

        assert config.report_arrow_arguments is True
        assert config.ignored_names == []
        assert config.output_format == 'table'
        assert config.sort_results is False


class TestEnvironment:
    """Settings read from JSGLOBALS_* variables."""

    def test_arrow_arguments_ignore(self, monkeypatch):
        monkeypatch.setenv('JSGLOBALS_ARROW_ARGUMENTS', 'IGNORE')
        assert Config().report_arrow_arguments is False

    def test_ignored_names(self, monkeypatch):
        monkeypatch.setenv('JSGLOBALS_IGNORE', 'window, document,,console ')
        assert Config().ignored_names == ['window', 'document', 'console']

    def test_output_format(self, monkeypatch):
        monkeypatch.setenv('JSGLOBALS_FORMAT', 'JSON')
        assert Config().output_format == 'json'

    @pytest.mark.parametrize('value, expected', [
        ('1', True),
        ('true', True),
        ('Yes', True),
        ('on', True),
        ('0', False),
        ('no', False),
    ])
    def test_sort_results(self, monkeypatch, value, expected):
        monkeypatch.setenv('JSGLOBALS_SORT', value)
        assert Config().sort_results is expected


class TestValidation:
    """Unknown enumerated values are rejected."""

    def test_bad_format(self, monkeypatch):
        monkeypatch.setenv('JSGLOBALS_FORMAT', 'xml')
        with pytest.raises(ValueError, match='JSGLOBALS_FORMAT'):
            Config()

    def test_bad_arrow_mode(self, monkeypatch):
        monkeypatch.setenv('JSGLOBALS_ARROW_ARGUMENTS', 'sometimes')
        with pytest.raises(ValueError, match='JSGLOBALS_ARROW_ARGUMENTS'):
            Config()


class TestSingleton:
    """get_config caches until reset_config is called."""

    def test_cached(self):
        assert get_config() is get_config()

    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first
