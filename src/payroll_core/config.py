"""Configuration management for payroll core."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./payroll.db",
            ),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass(frozen=True)
class OrgPayrollSettings:
    """Organization-wide payroll policy.

    Passed explicitly into the calculators so that a computation never reads
    ambient state. Rates are fractions (``Decimal("0.3")`` is 30%).
    """

    daily_rate_includes_allowance: bool = False
    daily_rate_working_days_per_year: int = 261
    regular_holiday_rate: Decimal = Decimal("1.0")
    special_holiday_rate: Decimal = Decimal("0.3")
    rest_day_premium: Decimal = Decimal("0.3")
    overtime_regular_rate: Decimal = Decimal("1.25")
    overtime_rest_day_rate: Decimal = Decimal("1.69")
    # Holiday overtime: base x holiday rate + premium (+ rest_day_premium on a rest day)
    regular_holiday_ot_base: Decimal = Decimal("2.0")
    special_holiday_ot_base: Decimal = Decimal("1.3")
    holiday_ot_premium: Decimal = Decimal("0.3")
