"""
Runtime configuration.

Settings are read once at startup from ``BOOKRENT_*`` environment
variables and passed explicitly to the components that need them.
"""
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from bookrent.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_STREAM_BATCH_SIZE,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    ENV_PREFIX,
    LOAN_PERIOD_DAYS,
)
from bookrent.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = ('true', '1', 'yes')
_FALSE_VALUES = ('false', '0', 'no', '')
_LOG_FORMATS = ('text', 'json')


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    database_url: str = DEFAULT_DATABASE_URL
    echo_sql: bool = False
    loan_period_days: int = LOAN_PERIOD_DAYS
    stream_batch_size: int = DEFAULT_STREAM_BATCH_SIZE
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    log_level: str = 'INFO'
    log_file: Optional[str] = None
    log_format: str = 'text'
    populate_migrate: bool = True
    populate_init: bool = False
    populate_file: Optional[str] = None

    def __post_init__(self):
        invalid = []
        if self.loan_period_days <= 0:
            invalid.append('loan_period_days')
        if self.stream_batch_size <= 0:
            invalid.append('stream_batch_size')
        if self.sweep_interval_seconds <= 0:
            invalid.append('sweep_interval_seconds')
        if self.log_format not in _LOG_FORMATS:
            invalid.append('log_format')
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            invalid.append('log_level')
        if self.populate_init and not self.populate_file:
            invalid.append('populate_file')
        if invalid:
            raise ConfigurationError(
                f"Invalid settings: {', '.join(invalid)}",
                invalid_keys=invalid,
            )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith('sqlite')

    @property
    def is_in_memory(self) -> bool:
        return self.is_sqlite and (
            self.database_url in ('sqlite://', 'sqlite:///:memory:')
            or 'mode=memory' in self.database_url
        )


def _parse_bool(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}", invalid_keys=[key])


def _parse_number(key: str, raw: str, cast):
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}", invalid_keys=[key])


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If a variable cannot be parsed
    """
    env = os.environ if environ is None else environ

    def get(name: str) -> Optional[str]:
        return env.get(ENV_PREFIX + name)

    kwargs = {}
    if get('DATABASE_URL'):
        kwargs['database_url'] = get('DATABASE_URL')
    for name, attr in (
        ('ECHO_SQL', 'echo_sql'),
        ('POPULATE_MIGRATE', 'populate_migrate'),
        ('POPULATE_INIT', 'populate_init'),
    ):
        if get(name) is not None:
            kwargs[attr] = _parse_bool(ENV_PREFIX + name, get(name))
    for name, attr, cast in (
        ('LOAN_PERIOD_DAYS', 'loan_period_days', int),
        ('STREAM_BATCH_SIZE', 'stream_batch_size', int),
        ('SWEEP_INTERVAL_SECONDS', 'sweep_interval_seconds', float),
    ):
        if get(name) is not None:
            kwargs[attr] = _parse_number(ENV_PREFIX + name, get(name), cast)
    if get('LOG_LEVEL'):
        kwargs['log_level'] = get('LOG_LEVEL').upper()
    if get('LOG_FILE'):
        kwargs['log_file'] = get('LOG_FILE')
    if get('LOG_FORMAT'):
        kwargs['log_format'] = get('LOG_FORMAT').lower()
    if get('POPULATE_FILE'):
        kwargs['populate_file'] = get('POPULATE_FILE')

    settings = Settings(**kwargs)
    logger.debug(f"Loaded settings for {settings.database_url.split('://')[0]} database")
    return settings
