"""
Configuration management for Tomekeeper.

This module handles loading and accessing configuration values from config.yaml.
Imports never read the global configuration directly: the values they need
are snapshotted into an ImportSettings object at the start of each run.
"""

import yaml
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import LibraryError


DEFAULT_COLLECTIONS = {
    "species": "tomekeeper-species",
    "traits": "tomekeeper-traits",
    "classes": "tomekeeper-classes",
    "subclasses": "tomekeeper-subclasses",
    "features": "tomekeeper-features",
    "spells": "tomekeeper-spells",
    "actors": "tomekeeper-actors",
}


@dataclass(frozen=True)
class ImportSettings:
    """
    Immutable settings for a single import run.
    """
    ollama_host: str = "http://localhost:11434"
    model: str = "llama3"
    timeout: float = 120.0
    fetch_timeout: float = 15.0
    user_agent: str = "Tomekeeper/0.1"
    ruleset: str = "dnd5e"
    collections: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLLECTIONS))

    def collection(self, key: str) -> str:
        """
        Return the collection identifier for a collection key.

        Raises:
            LibraryError: If no collection is configured for the key
        """
        identifier = self.collections.get(key) or DEFAULT_COLLECTIONS.get(key)
        if not identifier:
            raise LibraryError(f"No collection configured for '{key}'")
        return identifier


class ConfigManager:
    """
    Manages configuration loading and access for Tomekeeper.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load configuration, using defaults: {e}")
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "ai": {
                "ollama_host": "http://localhost:11434",
                "model": "llama3",
                "timeout": 120.0
            },
            "fetch": {
                "timeout": 15.0,
                "user_agent": "Tomekeeper/0.1"
            },
            "library": {
                "filename": "tomekeeper.db",
                "collections": dict(DEFAULT_COLLECTIONS)
            },
            "ruleset": "dnd5e",
            "paths": {
                "log_file": "tomekeeper.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "ai.model")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("ai.model")  # Returns "llama3"
            config.get("library.collections.traits")  # Returns "tomekeeper-traits"
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    # Convenience properties for commonly used values

    @property
    def ollama_host(self) -> str:
        """Get Ollama host URL."""
        return self.get("ai.ollama_host", "http://localhost:11434")

    @property
    def model_name(self) -> str:
        """Get AI model name."""
        return self.get("ai.model", "llama3")

    @property
    def ollama_timeout(self) -> float:
        """Get Ollama timeout."""
        return float(self.get("ai.timeout", 120.0))

    @property
    def fetch_timeout(self) -> float:
        """Get the URL fetch timeout."""
        return float(self.get("fetch.timeout", 15.0))

    @property
    def library_filename(self) -> str:
        """Get document library database filename."""
        return self.get("library.filename", "tomekeeper.db")

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "tomekeeper.log")

    @property
    def ruleset(self) -> str:
        """Get the ruleset flavor used to format ability and skill codes."""
        return self.get("ruleset", "dnd5e")

    @property
    def collections(self) -> Dict[str, str]:
        """Get the collection key to collection identifier mapping."""
        configured = self.get("library.collections", {}) or {}
        merged = dict(DEFAULT_COLLECTIONS)
        merged.update({k: v for k, v in configured.items() if v})
        return merged

    def import_settings(self, model: Optional[str] = None) -> ImportSettings:
        """
        Snapshot the values an import needs.

        Args:
            model: Optional model name overriding the configured one

        Returns:
            An immutable ImportSettings for one run
        """
        return ImportSettings(
            ollama_host=self.ollama_host.rstrip('/'),
            model=model or self.model_name,
            timeout=self.ollama_timeout,
            fetch_timeout=self.fetch_timeout,
            user_agent=self.get("fetch.user_agent", "Tomekeeper/0.1"),
            ruleset=self.ruleset,
            collections=self.collections
        )


# Global configuration instance
config = ConfigManager()
