"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from collector.config.chain_constants import FACTORY_ADDRESS, POOL_FACTORY_ADDRESS
from collector.config.constants import (
    BATCH_BACKOFF_FACTOR,
    BLOCKCHAIN_TIMEOUT,
    CHUNK_DELAY,
    CHUNK_FAILURE_BACKOFF,
    CHUNK_SIZE,
    COLD_START_WINDOW,
    FALLBACK_ITEM_DELAY,
    INITIAL_BATCH_DELAY,
    INTER_TOKEN_DELAY,
    MAX_BATCH_DELAY,
    MAX_BATCH_SIZE,
    MAX_BLOCKS_PER_SCAN,
    POOL_CHECK_INTERVAL_MINUTES,
    POOL_CHECK_LIMIT,
    SCAN_INTERVAL_SECONDS,
    SHUTDOWN_TIMEOUT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Blockchain RPC
    rpc_url: str
    rpc_backup_url: str | None = None
    rpc_timeout: float = Field(
        default=BLOCKCHAIN_TIMEOUT, gt=0, description="RPC call timeout in seconds"
    )

    # Contracts
    factory_address: str = FACTORY_ADDRESS
    pool_factory_address: str = POOL_FACTORY_ADDRESS

    # Block scanning
    cold_start_window: int = Field(
        default=COLD_START_WINDOW,
        ge=0,
        description="Blocks scanned back from the tip when no cursor exists",
    )
    max_blocks_per_scan: int = Field(
        default=MAX_BLOCKS_PER_SCAN, gt=0, description="Max blocks per scan cycle"
    )
    chunk_size: int = Field(
        default=CHUNK_SIZE, gt=0, description="Blocks per log query"
    )
    chunk_delay: float = Field(default=CHUNK_DELAY, ge=0)
    chunk_failure_backoff: float = Field(default=CHUNK_FAILURE_BACKOFF, ge=0)

    # Batch persistence
    max_batch_size: int = Field(default=MAX_BATCH_SIZE, gt=0)
    initial_delay: float = Field(default=INITIAL_BATCH_DELAY, ge=0)
    backoff_factor: float = Field(default=BATCH_BACKOFF_FACTOR, ge=1.0)
    max_delay: float = Field(default=MAX_BATCH_DELAY, ge=0)
    item_delay: float = Field(default=FALLBACK_ITEM_DELAY, ge=0)

    # Pool discovery
    pool_check_limit: int = Field(default=POOL_CHECK_LIMIT, gt=0)
    inter_token_delay: float = Field(default=INTER_TOKEN_DELAY, ge=0)
    discover_pools_after_scan: bool = True

    # Scheduling
    scan_interval_seconds: int = Field(default=SCAN_INTERVAL_SECONDS, ge=1)
    pool_check_interval_minutes: int = Field(
        default=POOL_CHECK_INTERVAL_MINUTES, ge=1
    )
    shutdown_timeout: float = Field(default=SHUTDOWN_TIMEOUT, gt=0)

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str | None = "logs/collector.log"
    health_check_port: int = Field(
        default=8081, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_backoff(self) -> 'Settings':
        """Keep the initial batch delay within the backoff cap."""
        if self.initial_delay > self.max_delay:
            logger.warning(
                f"INITIAL_DELAY ({self.initial_delay}s) exceeds MAX_DELAY "
                f"({self.max_delay}s), capping it"
            )
            self.initial_delay = self.max_delay
        return self

    @field_validator('factory_address', 'pool_factory_address')
    @classmethod
    def validate_eth_address(cls, v: str) -> str:
        """Validate Ethereum address format."""
        if not v.startswith('0x') or len(v) != 42:
            raise ValueError(
                f'Invalid Ethereum address: {v}. '
                'Must start with 0x and be 42 characters long.'
            )
        try:
            int(v[2:], 16)
        except ValueError as exc:
            raise ValueError(f'Invalid Ethereum address format: {v}') from exc
        return v.lower()

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                'or sqlite+aiosqlite://'
            )
        return v

    @field_validator('rpc_url', 'rpc_backup_url')
    @classmethod
    def validate_rpc_url(cls, v: str | None) -> str | None:
        """Validate RPC endpoint URL."""
        if v is None:
            return v
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f'RPC URL must be an HTTP(S) endpoint, got: {v}')
        return v


# Global settings instance
settings = Settings()
