"""
Configuration module for Music Radio.
"""

import copy
import os
from typing import Any, Dict, List, Optional

import yaml


class Config:
    """Configuration manager for the music radio library."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration.

        Args:
            config_path: Path to YAML configuration file. If None, uses
                built-in defaults.
        """
        self._config: Dict[str, Any] = self._get_builtin_defaults()
        self._config_path = config_path

        if config_path and os.path.exists(config_path):
            self.load_from_file(config_path)

    def _get_builtin_defaults(self) -> Dict[str, Any]:
        """Return built-in default configuration."""
        return {
            "library": {
                "music_root": "./music",
                "db_path": "./data/music_library.db",
                "export_dir": "./data",
                "manifest_filename": "library.parquet",
                "supported_formats": ["mp3", "m4a", "ogg", "wav", "flac", "aac"],
            },
            "metadata": {
                "normalize_strings": True,
            },
            "radio": {
                "history_window": 10,
                "variety": 1,
                "top_tracks": 100,
                "genre_similarity": True,
            },
            "discovery": {
                "min_library_size": 20,
                "min_group_size": 20,
                "hybrid_weight": 0.7,
                "genre_images": None,
            },
            "search": {
                "max_results": 20,
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "file": None,
            },
        }

    def load_from_file(self, config_path: str) -> None:
        """Load configuration from YAML file.

        Values from the file are merged over the built-in defaults, so a
        file only needs to name the keys it changes.

        Args:
            config_path: Path to YAML configuration file.
        """
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f) or {}

        self._config_path = config_path
        self._config = _deep_merge(self._get_builtin_defaults(), loaded)

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Resolve relative paths in configuration."""
        config_dir = os.path.dirname(os.path.abspath(self._config_path or ""))

        library = self._config.get("library", {})
        for key in ("music_root", "db_path", "export_dir"):
            value = library.get(key)
            if value and value != ":memory:" and not os.path.isabs(value):
                library[key] = os.path.join(config_dir, value)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key.

        Args:
            key: Dot-separated configuration key (e.g., "radio.variety")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by dot-separated key.

        Args:
            key: Dot-separated configuration key
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    @property
    def library(self) -> Dict[str, Any]:
        """Get library configuration."""
        return self._config.get("library", {})

    @property
    def metadata(self) -> Dict[str, Any]:
        """Get metadata extraction configuration."""
        return self._config.get("metadata", {})

    @property
    def radio(self) -> Dict[str, Any]:
        """Get radio station configuration."""
        return self._config.get("radio", {})

    @property
    def discovery(self) -> Dict[str, Any]:
        """Get station discovery configuration."""
        return self._config.get("discovery", {})

    @property
    def search(self) -> Dict[str, Any]:
        """Get search configuration."""
        return self._config.get("search", {})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self._config.get("logging", {})

    @property
    def music_root(self) -> str:
        """Get music root directory."""
        return self.get("library.music_root", "./music")

    @property
    def db_path(self) -> str:
        """Get library database path."""
        return self.get("library.db_path", "./data/music_library.db")

    @property
    def manifest_path(self) -> str:
        """Get manifest export path."""
        export_dir = self.get("library.export_dir", "./data")
        filename = self.get("library.manifest_filename", "library.parquet")
        return os.path.join(export_dir, filename)

    @property
    def supported_formats(self) -> List[str]:
        """Get the audio extension allowlist (without dots, lowercase)."""
        formats = self.get(
            "library.supported_formats", ["mp3", "m4a", "ogg", "wav", "flac", "aac"]
        )
        return [f.lower().lstrip(".") for f in formats]

    def save(self, path: str) -> None:
        """Save configuration to YAML file.

        Args:
            path: Path to save configuration.
        """
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self._config, f, default_flow_style=False)

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the configuration."""
        return copy.deepcopy(self._config)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` and return ``base``."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base
