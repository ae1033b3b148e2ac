"""Application configuration defaults."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from docblog.ai.description import DEFAULT_MODEL

DEFAULT_CREDENTIALS_PATH = Path(".gcloud/application_default_credentials.json")

# Keys used by the older config.json layout.
LEGACY_KEYS = {
    "credentials_file_path": "credentials_path",
}


@dataclass(slots=True)
class AppConfig:
    drive_dir_id: Optional[str] = None
    posts_output: Path = Path("posts")
    assets_output: Path = Path("assets")
    assets_prefix: str = ""
    credentials_path: Path = DEFAULT_CREDENTIALS_PATH
    frontmatter_format: str = "yaml"
    layout: Optional[str] = None
    max_workers: int = 4
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    gemini_prompt: Optional[str] = None

    def __post_init__(self) -> None:
        self.posts_output = Path(self.posts_output)
        self.assets_output = Path(self.assets_output)
        self.credentials_path = Path(self.credentials_path)

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Return a copy where every non-None override replaces the stored value."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({key: value for key, value in overrides.items() if value is not None})
        return AppConfig(**values)


def load_config(path: Path | None) -> AppConfig:
    """Load a JSON config file; a missing path yields the defaults."""
    if path is None:
        return AppConfig()

    with Path(path).open("r", encoding="utf-8") as handle:
        raw: Dict[str, Any] = json.load(handle)

    known = {f.name for f in fields(AppConfig)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        name = LEGACY_KEYS.get(key, key)
        if name not in known:
            raise ValueError(f"Unknown config key: {key}")
        values[name] = value
    return AppConfig(**values)
