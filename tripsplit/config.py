"""
Configuration for the trip split service.

Values come from environment variables prefixed with ``TRIPSPLIT_`` and from an
optional ``.env`` file.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettledFlagPolicy(str, Enum):
    carry_forward = "carry_forward"
    overwrite = "overwrite"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRIPSPLIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = Field(
        default="Trip Split Service",
        description="Title shown in the OpenAPI docs"
    )
    log_level: str = Field(
        default="INFO",
        description="Root logging level"
    )
    settlement_epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Balances within +/- this band are treated as settled"
    )
    money_precision: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Quantum used when amounts are serialized"
    )
    settled_flag_policy: SettledFlagPolicy = Field(
        default=SettledFlagPolicy.carry_forward,
        description="What happens to 'paid' marks when settlements are regenerated"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
