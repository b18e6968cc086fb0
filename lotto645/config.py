"""
LOTTO645 Configuration
======================

Reads config/config.ini into frozen settings dataclasses. Missing
sections or options fall back to the dataclass defaults with a warning.

Environment overrides:
- LOTTO645_CONFIG: path of the ini file
- CACHE_TTL_SECONDS: result cache lifetime
"""

import configparser
import os
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Tuple

from loguru import logger

from .cache import DEFAULT_TTL_SECONDS
from .combinations import SUM_RANGE_RECOMMENDED, SUM_RANGE_WIDE, GeneratorSettings
from .scoring import ScoringWeights
from .validation import ValidationSettings

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'config', 'config.ini')

_NAMED_SUM_RANGES = {
    'wide': SUM_RANGE_WIDE,
    'recommended': SUM_RANGE_RECOMMENDED,
}


@dataclass(frozen=True)
class EngineConfig:
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    generator: GeneratorSettings = field(default_factory=GeneratorSettings)
    validation: ValidationSettings = field(default_factory=ValidationSettings)
    cache_ttl_seconds: float = DEFAULT_TTL_SECONDS


def parse_range(value: str) -> Tuple[int, int]:
    """'wide', 'recommended' or 'min,max' -> (min, max)."""
    value = value.strip().lower()
    if value in _NAMED_SUM_RANGES:
        return _NAMED_SUM_RANGES[value]
    try:
        low, high = (int(part) for part in value.split(','))
    except ValueError as e:
        raise ValueError(f"Invalid range {value!r}, expected 'min,max'") from e
    if low > high:
        raise ValueError(f"Invalid range {value!r}: min > max")
    return low, high


def _convert(raw: str, default):
    if isinstance(default, bool):
        return raw.strip().lower() in ('1', 'true', 'yes', 'on')
    if isinstance(default, tuple):
        return parse_range(raw)
    return type(default)(raw)


def _load_section(config: configparser.ConfigParser, section: str, settings):
    """Overlay one ini section onto a settings dataclass instance."""
    if not config.has_section(section):
        logger.warning(f"Config section '{section}' not found, using defaults")
        return settings

    overrides = {}
    for f in fields(settings):
        if not config.has_option(section, f.name):
            continue
        raw = config.get(section, f.name)
        try:
            overrides[f.name] = _convert(raw, getattr(settings, f.name))
        except ValueError as e:
            logger.warning(f"Invalid value for [{section}] {f.name}={raw!r} ({e}), using default")

    unknown = set(config.options(section)) - {f.name for f in fields(settings)}
    if unknown:
        logger.warning(f"Unknown options in [{section}]: {sorted(unknown)}")

    return replace(settings, **overrides)


def load_config(path: Optional[str] = None) -> EngineConfig:
    """
    Load engine configuration.

    Args:
        path: ini file path; LOTTO645_CONFIG or config/config.ini when None

    Returns:
        EngineConfig (defaults when the file is missing or unreadable)
    """
    config_path = path or os.getenv('LOTTO645_CONFIG') or DEFAULT_CONFIG_PATH
    config = configparser.ConfigParser()

    try:
        read_files = config.read(config_path, encoding='utf-8')
        if not read_files:
            logger.warning(f"Config file not found at {config_path}, using defaults")
    except (configparser.Error, OSError) as e:
        logger.error(f"Error reading config file: {e}. Using default configuration.")
        config = configparser.ConfigParser()

    engine_config = EngineConfig(
        scoring=_load_section(config, 'scoring', ScoringWeights()),
        generator=_load_section(config, 'generator', GeneratorSettings()),
        validation=_load_section(config, 'validation', ValidationSettings()),
    )

    ttl = DEFAULT_TTL_SECONDS
    if config.has_option('cache', 'ttl_seconds'):
        raw_ttl = config.get('cache', 'ttl_seconds')
        try:
            ttl = float(raw_ttl)
        except ValueError:
            logger.warning(f"Invalid value for [cache] ttl_seconds={raw_ttl!r}, using default")
    env_ttl = os.getenv('CACHE_TTL_SECONDS')
    if env_ttl:
        try:
            ttl = float(env_ttl)
        except ValueError:
            logger.warning(f"Ignoring invalid CACHE_TTL_SECONDS={env_ttl!r}")

    engine_config = replace(engine_config, cache_ttl_seconds=ttl)
    logger.debug(f"Configuration loaded from {config_path}")
    return engine_config
