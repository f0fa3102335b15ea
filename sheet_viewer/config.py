from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sheet_viewer.capability import DEFAULT_PERSONAL_CODE, DEFAULT_RESTRICTED_CODE
from sheet_viewer.sources import DEFAULT_TIMEOUT

DEFAULT_DOC_ID = "1DuMk9-kPO_FmXGOyunTcGGC1Rquoova5Q6DCTr5Z_A8"
ENV_PREFIX = "SHEET_VIEWER_"


class Settings(BaseSettings):
    """Runtime settings, read from ``SHEET_VIEWER_*`` environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore", frozen=True)

    doc_id: str = DEFAULT_DOC_ID
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    personal_code: str = DEFAULT_PERSONAL_CODE
    restricted_code: str = DEFAULT_RESTRICTED_CODE
    # JSON object, e.g. {"JPY": 0.21}
    exchange_rates: dict[str, float] = Field(default_factory=dict)
    output_stamp: str | None = None

    @field_validator("doc_id", "personal_code", "restricted_code", mode="before")
    @classmethod
    def blank_means_default(cls, value, info):
        if value is None or not str(value).strip():
            return cls.model_fields[info.field_name].default
        return str(value).strip()

    @field_validator("exchange_rates")
    @classmethod
    def upper_currency_codes(cls, value: dict[str, float]) -> dict[str, float]:
        return {code.strip().upper(): rate for code, rate in value.items()}

    @field_validator("output_stamp")
    @classmethod
    def blank_stamp_is_unset(cls, value: str | None) -> str | None:
        return value or None
