from decimal import Decimal

import pytest

from voice_budget.core import settings
from voice_budget.errors import MissingConfiguration


def test_mask_env_value():
    assert settings.mask_env_value("OPENAI_API_KEY", "sk-abcdef") == "sk...ef"
    assert settings.mask_env_value("OPENAI_MODEL", "gpt-4o-mini") == "gpt-4o-mini"
    assert settings.mask_env_value("DATABASE_URL", "postgresql://me:pw@db/budget") == "po...et"
    assert settings.mask_env_value("DATABASE_URL", "sqlite:///voice_budget.db") == "sqlite:///voice_budget.db"
    assert settings.mask_env_value("AUTH", "abc") == "****"


def test_default_monthly_income(monkeypatch):
    monkeypatch.delenv("DEFAULT_MONTHLY_INCOME", raising=False)
    assert settings.default_monthly_income() == Decimal("3000")

    monkeypatch.setenv("DEFAULT_MONTHLY_INCOME", "4500.50")
    assert settings.default_monthly_income() == Decimal("4500.50")

    for bad in ("lots", "-10", "0", "NaN"):
        monkeypatch.setenv("DEFAULT_MONTHLY_INCOME", bad)
        assert settings.default_monthly_income() == Decimal("3000")


def test_env_positive_int(monkeypatch):
    monkeypatch.setenv("PAGE_SIZE_TEST", "7")
    assert settings.env_positive_int("PAGE_SIZE_TEST", 20) == 7
    monkeypatch.setenv("PAGE_SIZE_TEST", "0")
    assert settings.env_positive_int("PAGE_SIZE_TEST", 20) == 20
    monkeypatch.setenv("PAGE_SIZE_TEST", "seven")
    assert settings.env_positive_int("PAGE_SIZE_TEST", 20) == 20


def test_require_setting(monkeypatch):
    monkeypatch.setenv("SOME_SETTING", "  value ")
    assert settings.require_setting("SOME_SETTING") == "value"

    monkeypatch.setenv("SOME_SETTING", "   ")
    with pytest.raises(MissingConfiguration):
        settings.require_setting("SOME_SETTING")


def test_database_url(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    assert settings.database_url() == "sqlite://"
    monkeypatch.delenv("DATABASE_URL")
    assert settings.database_url().endswith("voice_budget.db")
