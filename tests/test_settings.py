"""
Tests for settings loading and validation.
"""

from dataclasses import FrozenInstanceError

import pytest

from bookrent.config import Settings, load_settings
from bookrent.exceptions import ConfigurationError


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.loan_period_days == 30
        assert settings.stream_batch_size == 100
        assert settings.log_level == 'INFO'
        assert settings.populate_migrate is True
        assert settings.populate_init is False
        assert settings.is_sqlite

    @pytest.mark.parametrize("url, in_memory", [
        ('sqlite://', True),
        ('sqlite:///:memory:', True),
        ('sqlite:///file:db?mode=memory&cache=shared&uri=true', True),
        ('sqlite:///bookrent.db', False),
        ('postgresql://user:pw@localhost/bookrent', False),
    ])
    def test_in_memory_detection(self, url, in_memory):
        assert Settings(database_url=url).is_in_memory is in_memory

    @pytest.mark.parametrize("kwargs, key", [
        ({'loan_period_days': 0}, 'loan_period_days'),
        ({'stream_batch_size': -1}, 'stream_batch_size'),
        ({'sweep_interval_seconds': 0}, 'sweep_interval_seconds'),
        ({'log_format': 'xml'}, 'log_format'),
        ({'log_level': 'CHATTY'}, 'log_level'),
        ({'populate_init': True}, 'populate_file'),
    ])
    def test_invalid_values(self, kwargs, key):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(**kwargs)

        assert key in exc_info.value.details['invalid_keys']

    def test_frozen(self):
        settings = Settings()

        with pytest.raises(FrozenInstanceError):
            settings.loan_period_days = 1


class TestLoadSettings:

    def test_empty_environment_gives_defaults(self):
        assert load_settings({}) == Settings()

    def test_reads_prefixed_variables(self):
        settings = load_settings({
            'BOOKRENT_DATABASE_URL': 'postgresql://u:p@db/rent',
            'BOOKRENT_ECHO_SQL': 'yes',
            'BOOKRENT_POPULATE_MIGRATE': '0',
            'BOOKRENT_POPULATE_INIT': 'true',
            'BOOKRENT_POPULATE_FILE': 'seed.sql',
            'BOOKRENT_LOAN_PERIOD_DAYS': '14',
            'BOOKRENT_STREAM_BATCH_SIZE': '25',
            'BOOKRENT_SWEEP_INTERVAL_SECONDS': '0.5',
            'BOOKRENT_LOG_LEVEL': 'debug',
            'BOOKRENT_LOG_FORMAT': 'JSON',
            'BOOKRENT_LOG_FILE': '/tmp/bookrent.log',
            'DATABASE_URL': 'ignored',
        })

        assert settings.database_url == 'postgresql://u:p@db/rent'
        assert settings.echo_sql is True
        assert settings.populate_migrate is False
        assert settings.populate_init is True
        assert settings.populate_file == 'seed.sql'
        assert settings.loan_period_days == 14
        assert settings.stream_batch_size == 25
        assert settings.sweep_interval_seconds == 0.5
        assert settings.log_level == 'DEBUG'
        assert settings.log_format == 'json'
        assert settings.log_file == '/tmp/bookrent.log'

    @pytest.mark.parametrize("env, key", [
        ({'BOOKRENT_ECHO_SQL': 'maybe'}, 'BOOKRENT_ECHO_SQL'),
        ({'BOOKRENT_LOAN_PERIOD_DAYS': 'thirty'}, 'BOOKRENT_LOAN_PERIOD_DAYS'),
    ])
    def test_unparseable_values(self, env, key):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env)

        assert exc_info.value.details['invalid_keys'] == [key]

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv('BOOKRENT_LOAN_PERIOD_DAYS', '7')

        assert load_settings().loan_period_days == 7
