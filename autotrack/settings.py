"""Runtime settings: alert thresholds, file locations, type suggestions."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Union

import yaml

from .errors import InvalidInputError
from .maintenance import DEFAULT_NOTIFY_DAYS

logger = logging.getLogger(__name__)

# Odometer distance at which a record becomes imminent
IMMINENT_KM = 3000
# Distance treated as one day of typical use when ranking alerts
KM_PER_DAY = 50
CHECK_MINUTES = 30

FALLBACK_TYPES = ["Check", "Inspection", "Other"]


@dataclass
class Settings:
    """Thresholds and paths shared by the CLI, web API and notifier."""

    data_file: Path = Path("data/autotrack.yaml")
    sent_log_file: Path = Path("data/sent-notifications.yaml")
    types_file: Path = Path("maintenance_types.yaml")
    imminent_km: int = IMMINENT_KM
    km_per_day: float = KM_PER_DAY
    default_notify_days: int = DEFAULT_NOTIFY_DAYS
    check_minutes: int = CHECK_MINUTES
    log_level: str = "INFO"


def _env_number(environ: Mapping[str, str], name: str, default, cast=int):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise InvalidInputError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise InvalidInputError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from AUTOTRACK_* environment variables."""
    if environ is None:
        environ = os.environ
    defaults = Settings()
    settings = Settings(
        data_file=Path(environ.get("AUTOTRACK_DATA_FILE") or defaults.data_file),
        sent_log_file=Path(environ.get("AUTOTRACK_SENT_LOG") or defaults.sent_log_file),
        types_file=Path(environ.get("AUTOTRACK_TYPES_FILE") or defaults.types_file),
        imminent_km=_env_number(environ, "AUTOTRACK_IMMINENT_KM", IMMINENT_KM),
        km_per_day=_env_number(environ, "AUTOTRACK_KM_PER_DAY", KM_PER_DAY, float),
        default_notify_days=_env_number(
            environ, "AUTOTRACK_DEFAULT_NOTIFY_DAYS", DEFAULT_NOTIFY_DAYS
        ),
        check_minutes=_env_number(environ, "AUTOTRACK_CHECK_MINUTES", CHECK_MINUTES),
        log_level=(environ.get("AUTOTRACK_LOG_LEVEL") or defaults.log_level).upper(),
    )
    if settings.km_per_day == 0:
        raise InvalidInputError("AUTOTRACK_KM_PER_DAY must be greater than zero")
    if settings.check_minutes == 0:
        raise InvalidInputError("AUTOTRACK_CHECK_MINUTES must be greater than zero")
    return settings


def load_maintenance_types(filename: Union[str, Path]) -> List[str]:
    """
    Load the maintenance type suggestion list.

    The file holds a `types:` list. Types are sorted case-insensitively.
    A missing or malformed file falls back to a short built-in list.
    """
    try:
        with open(filename, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Cannot read maintenance types from %s: %s", filename, e)
        return list(FALLBACK_TYPES)

    types = data.get("types") if isinstance(data, dict) else None
    if not isinstance(types, list):
        logger.warning("Maintenance types file %s has no 'types' list", filename)
        return list(FALLBACK_TYPES)
    return sorted((str(t) for t in types), key=str.casefold)
