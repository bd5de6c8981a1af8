from collections.abc import Callable
from decimal import Decimal, InvalidOperation

from voice_budget.core import settings
from voice_budget.database.store import FinanceStore
from voice_budget.errors import InvalidAmount, InvalidArguments
from voice_budget.logger import get_logger
from voice_budget.models import ConfigEntry

logger = get_logger(__name__)

MONTHLY_INCOME_KEY = "monthly_income"
MAX_KEY_LENGTH = 100


def _parse_income(raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip().replace("$", "").replace(",", ""))
    except InvalidOperation as exc:
        raise InvalidAmount(f"monthly_income must be a number, got '{raw}'") from exc
    if not value.is_finite() or value <= 0:
        raise InvalidAmount(f"monthly_income must be positive, got '{raw}'")
    return value


def monthly_income(store: FinanceStore) -> Decimal:
    """Configured monthly income, falling back to DEFAULT_MONTHLY_INCOME."""
    entry = store.get_config(MONTHLY_INCOME_KEY)
    if entry is None:
        return settings.default_monthly_income()
    try:
        return _parse_income(entry.value)
    except InvalidAmount:
        logger.warning("[CONFIG] Stored monthly_income '%s' is invalid; using default.", entry.value)
        return settings.default_monthly_income()


def income_provider(store: FinanceStore) -> Callable[[], Decimal]:
    return lambda: monthly_income(store)


def normalize_config(key: str, value: str | int | float | Decimal) -> tuple[str, str]:
    key = (key or "").strip()
    if not key:
        raise InvalidArguments("Config key cannot be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise InvalidArguments(f"Config key is longer than {MAX_KEY_LENGTH} characters")
    text = str(value).strip()
    if key == MONTHLY_INCOME_KEY:
        text = str(_parse_income(text))
    return key, text


def save_config(store: FinanceStore, key: str, value: str | int | float | Decimal) -> ConfigEntry:
    key, text = normalize_config(key, value)
    entry = store.set_config(key, text)
    logger.info("[CONFIG] %s updated.", key)
    return entry
