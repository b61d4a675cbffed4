"""
Plot configuration persistence for o3plot (platformdirs + JSON).

Persisted items (schema v1):
- store: ConfigStore.to_dict() representation (model groups, plot settings, reference)

Behavior:
- If config file missing or unreadable -> defaults are used
- If schema_version mismatches:
  - default: reset to defaults
  - optional: keep loaded but update version
- Unknown keys in loaded JSON are ignored with warnings

Design:
- StoreConfigData dataclass holds JSON-friendly data
- StoreConfig manager provides explicit API for load/save
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from o3plot.plot_config.config_store import ConfigStore
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

# Increment when you make a breaking change to the on-disk JSON schema.
SCHEMA_VERSION: int = 1

DEFAULT_APP_NAME = "o3plot"
DEFAULT_FILENAME = "plot_config.json"


@dataclass
class StoreConfigData:
    """
    JSON-serializable config payload.

    Schema v1:
    - store: Dict[str, Any] - ConfigStore.to_dict(); empty dict means defaults.
    """
    schema_version: int = SCHEMA_VERSION
    store: Dict[str, Any] = field(default_factory=dict)

    def to_json_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "schema_version": self.schema_version,
            "store": self.store,
        }

    @classmethod
    def from_json_dict(cls, d: Dict[str, Any]) -> "StoreConfigData":
        """
        Tolerant loader:
        - ignores unknown keys
        - tolerates a missing or malformed store section
        """
        try:
            schema_version = int(d.get("schema_version", -1))
        except (TypeError, ValueError):
            schema_version = -1

        store: Dict[str, Any] = {}
        store_raw = d.get("store")
        if isinstance(store_raw, dict):
            store = store_raw
        elif store_raw is not None:
            logger.warning("store is not a dict, using defaults")

        known_keys = {"schema_version", "store"}
        for key in d.keys():
            if key not in known_keys:
                logger.warning(f"Unknown key '{key}' in plot config, ignoring")

        return cls(schema_version=schema_version, store=store)


class StoreConfig:
    """
    Manager for loading/saving StoreConfigData to disk.
    """

    def __init__(self, *, path: Path, data: Optional[StoreConfigData] = None):
        self.path = path
        self.data = data if data is not None else StoreConfigData()

    # -----------------------------
    # Construction / persistence
    # -----------------------------
    @staticmethod
    def default_config_path(
        app_name: str = DEFAULT_APP_NAME,
        filename: str = DEFAULT_FILENAME,
        app_author: str | None = None,
    ) -> Path:
        """
        Determine OS-appropriate per-user config path.

        macOS:   ~/Library/Application Support/o3plot/plot_config.json
        Linux:   ~/.config/o3plot/plot_config.json
        Windows: %APPDATA%\\o3plot\\plot_config.json
        """
        d = Path(user_config_dir(app_name, app_author))
        d.mkdir(parents=True, exist_ok=True)
        return d / filename

    @classmethod
    def load(
        cls,
        *,
        config_path: Optional[Path] = None,
        app_name: str = DEFAULT_APP_NAME,
        filename: str = DEFAULT_FILENAME,
        app_author: str | None = None,
        schema_version: int = SCHEMA_VERSION,
        reset_on_version_mismatch: bool = True,
        create_if_missing: bool = False,
    ) -> "StoreConfig":
        """
        Load config from disk.

        If file doesn't exist or is unreadable -> defaults.
        If schema mismatch:
          - reset_on_version_mismatch=True -> defaults
          - else -> keep loaded but overwrite schema_version

        If create_if_missing=True and file is missing -> immediately write defaults.
        """
        path = config_path or cls.default_config_path(app_name=app_name, filename=filename, app_author=app_author)
        default_data = StoreConfigData(schema_version=schema_version)

        try:
            raw = path.read_text(encoding="utf-8")
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                logger.warning(f"Plot config file at {path} does not contain a dict, using defaults")
                return cls(path=path, data=default_data)

            loaded = StoreConfigData.from_json_dict(parsed)

            if int(loaded.schema_version) != int(schema_version):
                if reset_on_version_mismatch:
                    logger.warning(
                        f"Plot config schema version mismatch: loaded={loaded.schema_version}, "
                        f"expected={schema_version}, resetting to defaults"
                    )
                    cfg = cls(path=path, data=default_data)
                    if create_if_missing:
                        cfg.save()
                    return cfg
                loaded.schema_version = int(schema_version)

            return cls(path=path, data=loaded)
        except FileNotFoundError:
            logger.debug(f"Plot config file not found at {path}, using defaults")
            cfg = cls(path=path, data=default_data)
            if create_if_missing:
                cfg.save()
            return cfg
        except json.JSONDecodeError as e:
            logger.warning(f"Plot config file at {path} is not valid JSON: {e}, using defaults")
            return cls(path=path, data=default_data)
        except OSError as e:
            logger.warning(f"Error reading plot config from {path}: {e}, using defaults")
            return cls(path=path, data=default_data)

    def save(self) -> None:
        """Write config to disk."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            json_str = json.dumps(self.data.to_json_dict(), indent=2)
            self.path.write_text(json_str, encoding="utf-8")
            logger.info(f"Saved plot config to {self.path}")
        except Exception as e:
            logger.error(f"Error saving plot config to {self.path}: {e}")
            raise

    def get_store(self) -> ConfigStore:
        """Build a ConfigStore from the loaded data (defaults if none was saved)."""
        if not self.data.store:
            return ConfigStore()
        try:
            return ConfigStore.from_dict(self.data.store)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Error restoring plot config: {e}, using defaults")
            return ConfigStore()

    def set_store(self, store: ConfigStore) -> None:
        """Capture the current state of store (call save() to write it)."""
        self.data.store = store.to_dict()
