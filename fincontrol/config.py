"""Configuration management for fincontrol."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Callable, TypeVar

from fincontrol.exceptions import ConfigurationError

T = TypeVar("T")

BCB_SGS_URL = "https://api.bcb.gov.br/dados/serie/bcdata.sgs.{code}/dados"


@dataclass
class RateSourceConfig:
    """Benchmark rate source configuration (BCB SGS API)."""

    base_url: str = BCB_SGS_URL
    series_code: str = "12"  # daily CDI, % per business day
    timeout_seconds: float = 10.0
    cache_ttl_seconds: float = 3600.0
    history_days: int = 1500
    fallback_daily_rate: Decimal = Decimal("0.055")

    @property
    def series_url(self) -> str:
        """URL of the configured series."""
        return self.base_url.format(code=self.series_code)


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "fincontrol"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class EngineConfig:
    """Main configuration for fincontrol."""

    rates: RateSourceConfig = field(default_factory=RateSourceConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Create config from environment variables."""
        import os

        rates = RateSourceConfig(
            base_url=os.getenv("RATE_SOURCE_URL", BCB_SGS_URL),
            series_code=os.getenv("RATE_SERIES_CODE", "12"),
            timeout_seconds=_parse("RATE_TIMEOUT", os.getenv("RATE_TIMEOUT", "10"), float),
            cache_ttl_seconds=_parse("RATE_CACHE_TTL", os.getenv("RATE_CACHE_TTL", "3600"), float),
            history_days=_parse("RATE_HISTORY_DAYS", os.getenv("RATE_HISTORY_DAYS", "1500"), int),
            fallback_daily_rate=_parse(
                "RATE_FALLBACK_DAILY", os.getenv("RATE_FALLBACK_DAILY", "0.055"), Decimal
            ),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=_parse("POSTGRES_PORT", os.getenv("POSTGRES_PORT", "5432"), int),
            database=os.getenv("POSTGRES_DB", "fincontrol"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        seed = os.getenv("SEED")

        return cls(
            rates=rates,
            postgres=postgres,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            seed=_parse("SEED", seed, int) if seed else None,
        )


def _parse(name: str, raw: str, convert: Callable[[str], T]) -> T:
    """Convert an environment value, naming the variable on failure."""
    try:
        return convert(raw)
    except (ValueError, InvalidOperation) as e:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e
