"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class StorageConfig:
    """Persistence settings."""
    data_dir: Path = Path("data")
    quota_bytes: Optional[int] = None
    search_history_limit: int = 20


@dataclass
class SourcesConfig:
    """External catalog settings."""
    google_books_url: str = "https://www.googleapis.com/books/v1/volumes"
    open_library_url: str = "https://openlibrary.org"
    open_library_covers_url: str = "https://covers.openlibrary.org"
    timeout: float = 30.0
    max_results: int = 12
    max_merged_results: int = 20


@dataclass
class RecommendationConfig:
    """Recommendation engine settings."""
    max_results: int = 12
    genre_limit: int = 2
    per_genre: int = 4
    popular_limit: int = 8
    award_limit: int = 6
    weights: dict = field(default_factory=lambda: {
        "genre": 0.8,
        "award": 0.7,
        "popular": 0.6,
        "weekly": 0.9,
    })


@dataclass
class UserConfig:
    """Local user settings."""
    user_name: str = "Book Lover"


@dataclass
class Settings:
    """Application settings."""

    # API keys (from environment only)
    google_books_api_key: Optional[str] = None

    # Config sections
    storage: StorageConfig = field(default_factory=StorageConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    recommendations: RecommendationConfig = field(default_factory=RecommendationConfig)
    user: UserConfig = field(default_factory=UserConfig)

    @property
    def data_dir(self) -> Path:
        return self.storage.data_dir

    @property
    def user_name(self) -> str:
        return self.user.user_name


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        google_books_api_key=os.getenv("GOOGLE_BOOKS_API_KEY"),
    )

    # Apply YAML config
    if "storage" in config:
        for key, value in config["storage"].items():
            if key == "data_dir":
                value = Path(value)
            setattr(settings.storage, key, value)

    if "sources" in config:
        for key, value in config["sources"].items():
            setattr(settings.sources, key, value)

    if "recommendations" in config:
        for key, value in config["recommendations"].items():
            if key == "weights":
                value = {**settings.recommendations.weights, **value}
            setattr(settings.recommendations, key, value)

    if "user" in config:
        settings.user = UserConfig(**config["user"])

    # Environment overrides
    data_dir = os.getenv("BOOK_FINDER_DATA_DIR")
    if data_dir:
        settings.storage.data_dir = Path(data_dir)

    user_name = os.getenv("BOOK_FINDER_USER")
    if user_name:
        settings.user.user_name = user_name

    return settings
