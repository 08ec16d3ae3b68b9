"""
Centralized settings and path configuration for the wholesale pricing core.

Every field can be overridden with a ``WHOLESALE_``-prefixed environment
variable (``WHOLESALE_ORDER_NUMBER_PREFIX``, ``WHOLESALE_API_PORT``, ...).
"""
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SEED_DIR = Path(__file__).resolve().parent.parent / 'data' / 'seed'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings with sensible defaults."""

    model_config = SettingsConfigDict(env_prefix='WHOLESALE_', env_file='.env', extra='ignore')

    # Project paths
    project_root: Path = Field(default_factory=get_project_root)

    # Seed files for the in-memory store; default to ``data_dir``
    data_dir: Path = DEFAULT_SEED_DIR
    products_csv: Optional[Path] = None
    vendors_csv: Optional[Path] = None

    # Order numbers
    order_number_prefix: str = 'FAS'
    order_number_attempts: int = Field(8, ge=1)
    order_conflict_retries: int = Field(3, ge=1)

    # Vendor ids carrying this prefix are draft copies of the published record
    draft_prefix: str = 'drafts.'

    # Overall per-request deadline; 0 disables it
    request_timeout_seconds: float = Field(10.0, ge=0)

    log_level: str = 'INFO'
    cors_origins: Annotated[list[str], NoDecode] = ['*']

    # HTTP server
    api_host: str = '0.0.0.0'
    api_port: int = 8000
    api_reload: bool = False

    @field_validator('log_level')
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator('cors_origins', mode='before')
    @classmethod
    def split_origins(cls, v):
        """Accept a comma-separated list from the environment."""
        if isinstance(v, str):
            return [o.strip() for o in v.split(',') if o.strip()]
        return v

    @model_validator(mode='after')
    def default_seed_files(self) -> 'Settings':
        if self.products_csv is None:
            self.products_csv = self.data_dir / 'products.csv'
        if self.vendors_csv is None:
            self.vendors_csv = self.data_dir / 'vendors.csv'
        return self


@lru_cache
def get_settings() -> Settings:
    """Get the global settings instance."""
    return Settings()
