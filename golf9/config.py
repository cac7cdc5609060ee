"""
Centralized configuration for the Golf 9 rules engine.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from golf9.config import config
    print(config.TURN_DURATION)
    print(config.card_values)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


@dataclass
class CardValues:
    """Card point values - the single source of truth."""
    ACE: int = 1
    TWO: int = 2
    THREE: int = 3
    FOUR: int = 4
    FIVE: int = -5
    SIX: int = 6
    SEVEN: int = 7
    EIGHT: int = 8
    NINE: int = 9
    TEN: int = 10
    JACK: int = 10
    QUEEN: int = 10
    KING: int = 0
    JOKER: int = -2

    def to_dict(self) -> dict[str, int]:
        """Get card values as dictionary keyed by rank string."""
        return {
            'A': self.ACE,
            '2': self.TWO,
            '3': self.THREE,
            '4': self.FOUR,
            '5': self.FIVE,
            '6': self.SIX,
            '7': self.SEVEN,
            '8': self.EIGHT,
            '9': self.NINE,
            '10': self.TEN,
            'J': self.JACK,
            'Q': self.QUEEN,
            'K': self.KING,
            '★': self.JOKER,
        }


@dataclass
class GameDefaults:
    """Default game settings used when the shell passes none."""
    players: int = 2
    rounds: int = 9
    use_jokers: bool = False


@dataclass
class EngineConfig:
    """Engine configuration."""
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Deadlines (seconds)
    TURN_DURATION: float = 25.0
    PEEK_DURATION: float = 15.0

    # How often the expiry watcher polls deadlines (seconds)
    EXPIRY_POLL_INTERVAL: float = 0.25

    card_values: CardValues = field(default_factory=CardValues)
    game_defaults: GameDefaults = field(default_factory=GameDefaults)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load configuration from environment variables."""
        return cls(
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            TURN_DURATION=get_env_float("TURN_DURATION", 25.0),
            PEEK_DURATION=get_env_float("PEEK_DURATION", 15.0),
            EXPIRY_POLL_INTERVAL=get_env_float("EXPIRY_POLL_INTERVAL", 0.25),
            card_values=CardValues(
                JOKER=get_env_int("CARD_JOKER", -2),
            ),
            game_defaults=GameDefaults(
                players=get_env_int("DEFAULT_PLAYERS", 2),
                rounds=get_env_int("DEFAULT_ROUNDS", 9),
                use_jokers=get_env_bool("DEFAULT_USE_JOKERS", False),
            ),
        )


# Global config instance - loaded once at module import
config = EngineConfig.from_env()


def reload_config() -> EngineConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = EngineConfig.from_env()
    return config
