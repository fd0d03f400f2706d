"""Simple configuration loader for kinship_tree.

Behavior:
- Load defaults.
- If environment variable `KINSHIP_CONFIG` is set, load that JSON file and merge.
- Environment variables override file values (variables: KINSHIP_LANGUAGE,
  KINSHIP_DEFAULT_GENDER, KINSHIP_FUZZY_SPOUSE_MATCH, KINSHIP_LOG_LEVEL).
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
import json
import logging
from typing import Any, Optional

from .labels import Vocabulary, get_vocabulary
from .models import Gender

_TRUE = ("1", "true", "yes", "on")


@dataclass
class Config:
    language: str = "en"
    default_gender: Gender = Gender.MALE
    fuzzy_spouse_match: bool = True
    log_level: str = "INFO"

    @property
    def vocabulary(self) -> Vocabulary:
        return get_vocabulary(self.language)

    def resolver_options(self) -> dict:
        return {
            "vocabulary": self.vocabulary,
            "default_gender": self.default_gender,
            "fuzzy_spouse_match": self.fuzzy_spouse_match,
        }


def _load_json_file(path: Path) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        logging.warning("config: could not read %s", path)
        return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def _default_gender(value: Any) -> Gender:
    g = Gender.parse(value)
    if g is Gender.UNKNOWN:
        raise ValueError("default_gender must be male or female")
    return g


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from (1) defaults, (2) JSON file, (3) env vars.

    :param config_path: optional path to a JSON config file. If not provided
                        will use environment variable `KINSHIP_CONFIG` if set.
    """
    cfg = Config()

    cp = config_path or os.environ.get("KINSHIP_CONFIG")
    if cp:
        data = _load_json_file(Path(cp))
        if isinstance(data, dict):
            if data.get("language"):
                cfg.language = data["language"]
            if data.get("default_gender"):
                cfg.default_gender = _default_gender(data["default_gender"])
            if "fuzzy_spouse_match" in data:
                cfg.fuzzy_spouse_match = _as_bool(data["fuzzy_spouse_match"])
            if data.get("log_level"):
                cfg.log_level = str(data["log_level"]).upper()

    # An explicit config_path is authoritative; env vars only apply otherwise.
    if config_path is None:
        if os.environ.get("KINSHIP_LANGUAGE"):
            cfg.language = os.environ["KINSHIP_LANGUAGE"]
        if os.environ.get("KINSHIP_DEFAULT_GENDER"):
            cfg.default_gender = _default_gender(os.environ["KINSHIP_DEFAULT_GENDER"])
        if os.environ.get("KINSHIP_FUZZY_SPOUSE_MATCH"):
            cfg.fuzzy_spouse_match = _as_bool(os.environ["KINSHIP_FUZZY_SPOUSE_MATCH"])
        if os.environ.get("KINSHIP_LOG_LEVEL"):
            cfg.log_level = os.environ["KINSHIP_LOG_LEVEL"].upper()

    # fail early on an unsupported language
    get_vocabulary(cfg.language)
    return cfg


def configure_logging(cfg: Config) -> None:
    logging.basicConfig(level=getattr(logging, cfg.log_level, logging.INFO))
