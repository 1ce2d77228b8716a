"""Tests for configuration loading."""

from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from book_finder.config import get_settings, load_config


def test_missing_config_file_uses_defaults() -> None:
    with patch.dict("os.environ", {}, clear=True):
        settings = get_settings(Path("/nonexistent/config.yaml"))

    assert load_config(Path("/nonexistent/config.yaml")) == {}
    assert settings.data_dir == Path("data")
    assert settings.user_name == "Book Lover"
    assert settings.google_books_api_key is None
    assert settings.recommendations.weights["weekly"] == 0.9


def test_yaml_sections_and_env_overrides() -> None:
    """YAML values apply first, then environment variables win."""
    with TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "config.yaml"
        config_path.write_text(
            "storage:\n"
            "  data_dir: /var/books\n"
            "  quota_bytes: 5000000\n"
            "sources:\n"
            "  timeout: 5\n"
            "recommendations:\n"
            "  max_results: 6\n"
            "  weights:\n"
            "    genre: 0.95\n"
            "user:\n"
            "  user_name: Ann\n",
            encoding="utf-8",
        )

        env = {"BOOK_FINDER_USER": "Bob", "GOOGLE_BOOKS_API_KEY": "test-key"}
        with patch.dict("os.environ", env, clear=True):
            settings = get_settings(config_path)

    assert settings.data_dir == Path("/var/books")
    assert settings.storage.quota_bytes == 5000000
    assert settings.sources.timeout == 5
    assert settings.recommendations.max_results == 6
    assert settings.recommendations.weights["genre"] == 0.95
    assert settings.recommendations.weights["popular"] == 0.6
    assert settings.user_name == "Bob"
    assert settings.google_books_api_key == "test-key"


def test_data_dir_env_override() -> None:
    with patch.dict("os.environ", {"BOOK_FINDER_DATA_DIR": "/tmp/agenda"}, clear=True):
        settings = get_settings(Path("/nonexistent/config.yaml"))

    assert settings.data_dir == Path("/tmp/agenda")
