import os
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import TypeVar

from dotenv import find_dotenv, load_dotenv

from voice_budget.errors import MissingConfiguration
from voice_budget.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"
DEFAULT_MONTHLY_INCOME = Decimal("3000")
DEFAULT_LIST_PAGE_SIZE = 20
DEFAULT_HISTORY_LIMIT = 50
FORECAST_WINDOW_DAYS = 30


def _dotenv_path() -> str | None:
    # CONFIG_DIR/.env wins over a .env found from the working directory.
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir and os.path.exists(os.path.join(config_dir, ".env")):
        return os.path.join(config_dir, ".env")
    return find_dotenv(usecwd=True) or None


def load_environment() -> None:
    path = _dotenv_path()
    if path:
        load_dotenv(dotenv_path=path, override=False)


def optional_setting(name: str, default: str | None = None) -> str | None:
    value = (os.getenv(name) or "").strip()
    return value or default


def require_setting(name: str) -> str:
    value = optional_setting(name)
    if value is None:
        raise MissingConfiguration(name)
    return value


def _env_value(
    name: str,
    default: T,
    convert: Callable[[str], T],
    accept: Callable[[T], bool],
    rule: str,
) -> T:
    raw = optional_setting(name)
    if raw is None:
        return default
    try:
        value = convert(raw)
    except (ValueError, InvalidOperation):
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if not accept(value):
        logger.warning("[ENV] %s='%s' %s, using default %s.", name, raw, rule, default)
        return default
    return value


def env_positive_int(name: str, default: int) -> int:
    return _env_value(name, default, int, lambda value: value >= 1, "must be at least 1")


def env_positive_decimal(name: str, default: Decimal) -> Decimal:
    return _env_value(
        name,
        default,
        Decimal,
        lambda value: value.is_finite() and value > 0,
        "must be positive",
    )


_SECRET_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD", "AUTH")
_SECRET_PREFIXES = ("sk-", "rk-", "bearer ")

_LOGGED_KEYS = (
    "LOG_LEVEL",
    "DATABASE_URL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "TRANSCRIPTION_MODEL",
    "DEFAULT_MONTHLY_INCOME",
    "LIST_PAGE_SIZE",
    "HISTORY_LIMIT",
)


def _is_secret(name: str, value: str) -> bool:
    if any(marker in name.upper() for marker in _SECRET_MARKERS):
        return True
    if value.lower().startswith(_SECRET_PREFIXES):
        return True
    # user:password@host in a database URL
    return "://" in value and "@" in value.split("://", 1)[1]


def mask_env_value(name: str, value: str) -> str:
    printable = value.replace("\r", "\\r").replace("\n", "\\n")
    if not _is_secret(name, printable):
        return printable
    if len(printable) <= 4:
        return "****"
    return f"{printable[:2]}...{printable[-2:]}"


def log_environment() -> None:
    logger.info("[ENV] Effective settings (secrets masked):")
    for key in _LOGGED_KEYS:
        raw = os.getenv(key)
        logger.info("[ENV] %s=%s", key, "<unset>" if raw is None else mask_env_value(key, raw))


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
if DATA_DIR not in {".", "./"}:
    os.makedirs(DATA_DIR, exist_ok=True)


def database_url() -> str:
    return optional_setting("DATABASE_URL") or f"sqlite:///{os.path.join(DATA_DIR, 'voice_budget.db')}"


def openai_model() -> str:
    return optional_setting("OPENAI_MODEL", DEFAULT_OPENAI_MODEL) or DEFAULT_OPENAI_MODEL


def transcription_model() -> str:
    return optional_setting("TRANSCRIPTION_MODEL", DEFAULT_TRANSCRIPTION_MODEL) or DEFAULT_TRANSCRIPTION_MODEL


def default_monthly_income() -> Decimal:
    return env_positive_decimal("DEFAULT_MONTHLY_INCOME", DEFAULT_MONTHLY_INCOME)


LIST_PAGE_SIZE = env_positive_int("LIST_PAGE_SIZE", DEFAULT_LIST_PAGE_SIZE)
HISTORY_LIMIT = env_positive_int("HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT)
