"""Application configuration utilities."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import synth


class Settings(BaseSettings):
    """Settings derived from environment variables."""

    data_source: Literal["sample", "csv"] = Field(default="sample", alias="INVOICE_DATA_SOURCE")
    invoice_csv_path: str = Field(default="data/invoice_data.csv", alias="INVOICE_CSV_PATH")
    sample_rows: int = Field(default=synth.DEFAULT_DATASET_ROWS, alias="SAMPLE_ROWS", gt=0)
    sample_seed: int = Field(default=synth.DEFAULT_SEED, alias="SAMPLE_SEED")
    sample_year: int = Field(default=synth.DEFAULT_YEAR, alias="SAMPLE_YEAR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def uses_store(self) -> bool:
        """Return ``True`` when invoices come from the store export."""

        return self.data_source == "csv"


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
