import json
import os
from typing import Any, Dict

import yaml
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from seocrawl.domain.config import CrawlConfig
from seocrawl.exceptions import CrawlConfigError


class ConfigFileStore:
    """Filesystem IO for crawl config files (YAML or JSON).

    Responsibility: locate, read, parse and validate files on disk.
    """

    def __init__(self, *, configs_dir: str = "."):
        self.configs_dir = configs_dir

    def _resolve_path(self, config_path: str) -> str:
        return config_path if os.path.isabs(config_path) else os.path.join(self.configs_dir, config_path)

    def load_dict(self, config_path: str) -> Dict[str, Any]:
        """Return the parsed mapping in `config_path`; JSON for .json files, YAML otherwise."""
        full_path = self._resolve_path(config_path)
        if not os.path.isfile(full_path):
            raise CrawlConfigError(config_path, "not found")
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                if full_path.endswith(".json"):
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise CrawlConfigError(config_path, f"could not be parsed: {e}") from e
        if not isinstance(data, dict):
            raise CrawlConfigError(config_path, "must contain a mapping")
        return data

    def load_config(self, config_path: str, **overrides: Any) -> CrawlConfig:
        """Load and validate a CrawlConfig; non-None keyword overrides win over file values."""
        data = self.load_dict(config_path)
        for key, value in overrides.items():
            if value is None:
                continue
            data.pop(to_camel(key), None)
            data[key] = value
        try:
            return CrawlConfig.model_validate(data)
        except ValidationError as e:
            raise CrawlConfigError(config_path, f"is invalid: {e}") from e
