"""
Configuration settings for the Dynasty League History API.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {
        "env_file": [".env", "backend/.env"],
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }

    # Application Environment
    environment: str = Field(default="development", description="Application environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=3002, description="API port")

    # CORS Configuration
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Sleeper API Configuration
    SLEEPER_API_BASE_URL: str = Field(default="https://api.sleeper.app/v1", description="Sleeper API base URL")
    SLEEPER_API_TIMEOUT: int = Field(default=10, description="Sleeper API request timeout in seconds")
    SLEEPER_PLAYERS_TIMEOUT: int = Field(default=30, description="Timeout for the large NFL players payload")
    SLEEPER_API_REQUEST_DELAY: float = Field(default=0.3, description="Delay before each Sleeper request (seconds)")
    SLEEPER_DEFAULT_LEAGUE_ID: str = Field(default="1180160954902351872", description="League loaded when none is given")

    # Redis Configuration
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: Optional[str] = Field(default=None, description="Redis password")
    REDIS_SSL: bool = Field(default=False, description="Enable SSL for Redis connection")
    REDIS_DECODE_RESPONSES: bool = Field(default=True, description="Auto-decode responses to strings")

    # Season Data Cache Configuration
    SLEEPER_SEASON_CACHE_TTL: int = Field(default=604800, description="Cache TTL for past-season data (7 days)")
    SLEEPER_SEASON_CACHE_KEY_PREFIX: str = Field(default="dynasty_analysis", description="Redis key prefix for season data")
    SLEEPER_PLAYERS_CACHE_TTL: int = Field(default=86400, description="Cache TTL in seconds (24 hours)")
    SLEEPER_PLAYERS_CACHE_KEY: str = Field(default="sleeper:nfl:players", description="Redis key for player cache")

    # League History Configuration
    HISTORY_MAX_ATTEMPTS: int = Field(default=5, description="Max previous-league hops to follow")
    HISTORY_MAX_CONSECUTIVE_FAILURES: int = Field(default=2, description="Stop history walk after this many failures in a row")
    HISTORY_REQUEST_DELAY: float = Field(default=0.5, description="Delay between history hops (seconds)")
    HISTORY_FAILURE_DELAY: float = Field(default=1.0, description="Delay after a failed history hop (seconds)")
    HISTORY_FALLBACK_SEASONS: int = Field(default=3, description="Seasons always present in the season map")

    # Matchup / Transaction Polling Configuration
    MATCHUP_MAX_WEEK: int = Field(default=18, description="Last matchup week fetched for a season")
    MATCHUP_BATCH_SIZE: int = Field(default=6, description="Weeks fetched per sequential batch")
    TRANSACTION_MAX_WEEK: int = Field(default=18, description="Last transaction week fetched for a season")
    TRANSACTIONS_BULK_ENABLED: bool = Field(default=False, description="Try the bulk transactions endpoint before weekly fetch")

    # Aggregation Configuration
    TRENDING_WEEKS_TO_CONSIDER: int = Field(default=3, description="Recent weeks used for trend deltas")
    DEFAULT_PLAYOFF_WEEK_START: int = Field(default=15, description="Playoff start week when league settings omit it")

    @property
    def cors_origins_list(self) -> List[str]:
        """Convert comma-separated CORS origins to list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


# Global settings instance
settings = Settings()
