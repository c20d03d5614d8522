"""Configuration manager for Clip Studio.

Settings come from a YAML file with dot-notation access. Provider API keys
and other secrets come from the environment, with ``.env`` files loaded in
priority order:
  1. Project root .env      (lowest priority)
  2. Local backend/.env     (overrides project root)
  3. Environment variables  (highest priority, never overwritten by .env)
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "settings.yaml"
CONFIG_ENV_VAR = "CLIP_STUDIO_CONFIG"

_config_instance: Optional["Config"] = None


class Config:
    """YAML settings with dot-notation access and environment lookups."""

    def __init__(self, config_path: str):
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(path) as f:
            self._data: dict = yaml.safe_load(f)
        if not isinstance(self._data, dict):
            raise ValueError(f"Config file must be a YAML mapping, got: {type(self._data)}")
        self.path = path
        self._load_env()

    # ── private ──────────────────────────────────────────────────────────────

    def _load_env(self) -> None:
        backend_dir = Path(__file__).parent.parent.parent
        project_env = backend_dir.parent / ".env"
        local_env = backend_dir / ".env"
        if project_env.exists():
            load_dotenv(project_env, override=False)
        if local_env.exists():
            load_dotenv(local_env, override=False)

    # ── public ───────────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        """Dot-notation access into the YAML tree.

        Example::

            config.get("providers.backoff_sec")          # 3600
            config.get("cost.base.quality")              # 0.5
            config.get("missing.key", "fallback")        # "fallback"
        """
        val: Any = self._data
        for k in key.split("."):
            if isinstance(val, dict) and k in val:
                val = val[k]
            else:
                return default
        return val

    def get_float(self, key: str, default: float) -> float:
        """Return a numeric setting, falling back to ``default`` when unset."""
        val = self.get(key)
        if val is None:
            return default
        return float(val)

    def get_env(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return an environment variable value."""
        return os.environ.get(name, default)


# ── module-level singleton ────────────────────────────────────────────────────


def get_config(config_path: Optional[str] = None) -> Config:
    """Return the singleton Config instance.

    On first call, ``config_path`` is required. Subsequent calls may omit it
    and will return the existing instance.

    Raises:
        RuntimeError: If called before the singleton is initialised.
    """
    global _config_instance
    if _config_instance is None:
        if config_path is None:
            raise RuntimeError(
                "Config not yet initialised, call get_config(config_path) first."
            )
        _config_instance = Config(config_path)
    return _config_instance


def get_config_or_none() -> Optional[Config]:
    """Return the singleton if it has been initialised, else None."""
    return _config_instance


def reset_config() -> None:
    """Clear the singleton (mainly for testing)."""
    global _config_instance
    _config_instance = None
