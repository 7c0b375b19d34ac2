"""
Configuration parser for Wallclock Calendar.

Handles TOML file parsing into dataclasses. Example::

    [General]
    default_timezone = "America/New_York"
    reference_timezone = "America/New_York"
    auto_decline = true
    log_level = "INFO"

    [Calendar.Work]
    timezone = "Europe/London"

    [Calendar.Home]
"""

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ValidationError
from .timezone_utils import DEFAULT_TIMEZONE, is_valid_timezone


logger = logging.getLogger(__name__)

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class CalendarConfig:
    """A calendar to create at start-up."""
    name: str
    timezone: Optional[str] = None  # falls back to General.default_timezone


@dataclass
class Config:
    """Main configuration container for Wallclock Calendar."""

    default_timezone: str = DEFAULT_TIMEZONE
    reference_timezone: str = DEFAULT_TIMEZONE  # zone of imported stores
    auto_decline: bool = True
    log_level: str = 'INFO'
    calendars: list[CalendarConfig] = field(default_factory=list)
    source_path: Optional[Path] = None

    def __post_init__(self):
        for label, zone in (('default_timezone', self.default_timezone),
                            ('reference_timezone', self.reference_timezone)):
            if not is_valid_timezone(zone):
                raise ValidationError(f"Unknown timezone for {label}: {zone!r}")
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ValidationError(f"Invalid log_level: {self.log_level!r}")

    @classmethod
    def default(cls) -> 'Config':
        return cls()

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'wallclock-calendar' / 'wallclock-calendar.toml'

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from a TOML file.

        Raises:
            FileNotFoundError: if the file does not exist.
            ValidationError: if a value is out of range.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        logger.debug(f"Loaded configuration from {config_path}: sections {list(data.keys())}")

        general = data.get('General', {})

        # Supports both [Calendar.Name] tables and a [Calendar] root with sub-tables
        calendars = []
        for key, value in data.items():
            if key.startswith('Calendar.') and isinstance(value, dict):
                calendars.append(CalendarConfig(key.split('.', 1)[1], value.get('timezone')))
            elif key == 'Calendar' and isinstance(value, dict):
                for name, sub_value in value.items():
                    if isinstance(sub_value, dict):
                        calendars.append(CalendarConfig(name, sub_value.get('timezone')))

        return cls(
            default_timezone=general.get('default_timezone', DEFAULT_TIMEZONE),
            reference_timezone=general.get('reference_timezone', DEFAULT_TIMEZONE),
            auto_decline=bool(general.get('auto_decline', True)),
            log_level=general.get('log_level', 'INFO'),
            calendars=calendars,
            source_path=config_path,
        )
