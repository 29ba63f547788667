"""Configuration helpers for the closet recommendation service."""

from dataclasses import dataclass, fields
from pathlib import Path
import os
from typing import Any, Dict, Optional

DEFAULT_DATABASE_PATH = "data/closet.db"
DEFAULT_CLIP_VERSION = "75b33f253f7714a281ad3e9b28f63e3232d583716ef6718f2e46641077ea040a"
DEFAULT_TEXT_EMBEDDING_MODEL = "models/text-embedding-004"
DEFAULT_CONFIG_DIR = "config/environments"

# Environment variable names that differ from the upper-cased field name.
_ENV_NAMES = {"database_path": "CLOSET_DB_PATH"}


@dataclass
class ClosetConfig:
    """Configuration values for the closet service.

    Scoring weights live here so they can be tuned per environment without
    touching the scoring code. ``occasion_weight`` is carried for completeness
    but does not feed the final score.
    """

    database_path: str = DEFAULT_DATABASE_PATH
    replicate_api_token: Optional[str] = None
    replicate_clip_version: str = DEFAULT_CLIP_VERSION
    google_api_key: Optional[str] = None
    text_embedding_model: str = DEFAULT_TEXT_EMBEDDING_MODEL
    text_embedding_dimension: int = 512
    hashing_dimension: int = 128
    color_weight: float = 0.7
    embedding_weight: float = 0.2
    occasion_weight: float = 0.5
    recommendations_per_category: int = 3
    max_generation_attempts: int = 25
    http_timeout_seconds: float = 30.0
    environment: str | None = None

    def score_weights(self) -> Dict[str, float]:
        return {
            "color": self.color_weight,
            "embedding": self.embedding_weight,
            "occasion": self.occasion_weight,
        }

    @classmethod
    def from_env(cls) -> "ClosetConfig":
        """Build a config from an optional YAML file overlaid with env vars.

        ``APP_CONFIG_PATH`` names the file directly; otherwise ``APP_ENV``
        selects ``<CLOSET_CONFIG_DIR>/<env>.yaml``. File keys are field names.
        Environment variables win so secrets can be injected at runtime, and
        every value is converted to its field's type here rather than at use.
        """

        env_name = os.getenv("APP_ENV") or None
        raw: Dict[str, Optional[str]] = {}
        path = cls._config_file(env_name)
        if path is not None and path.exists():
            raw.update(load_yaml_config(path))

        values: Dict[str, Any] = {}
        for field in fields(cls):
            if field.name == "environment":
                continue
            env_value = os.getenv(_ENV_NAMES.get(field.name, field.name.upper()))
            value = env_value if env_value not in (None, "") else raw.get(field.name)
            if value is not None:
                values[field.name] = _coerce(field.name, value, field.default)
        return cls(environment=env_name, **values)

    @staticmethod
    def _config_file(env_name: Optional[str]) -> Optional[Path]:
        explicit = os.getenv("APP_CONFIG_PATH")
        if explicit:
            return Path(explicit)
        if env_name:
            return Path(os.getenv("CLOSET_CONFIG_DIR", DEFAULT_CONFIG_DIR)) / f"{env_name}.yaml"
        return None


def _coerce(name: str, value: str, default: Any) -> Any:
    """Convert ``value`` to the type of the field's default."""

    try:
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {value!r}") from exc
    return value


def _parse_scalar(text: str) -> Optional[str]:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1]
    return None if text.lower() in {"", "~", "null"} else text


def load_yaml_config(path: Path) -> Dict[str, Optional[str]]:
    """Read a flat ``key: value`` YAML file; ``null`` and ``~`` become None.

    Only the subset the environment files use is understood: one mapping
    level, quoted or bare scalars, and ``#`` comments.
    """

    config: Dict[str, Optional[str]] = {}
    for number, line in enumerate(path.read_text().splitlines(), start=1):
        content = line.split(" #", 1)[0].strip()
        if not content or content.startswith("#"):
            continue
        key, sep, value = content.partition(":")
        if not sep or not key.strip():
            raise ValueError(f"{path}:{number}: expected 'key: value'")
        config[key.strip()] = _parse_scalar(value.strip())
    return config


__all__ = ["ClosetConfig", "load_yaml_config"]
