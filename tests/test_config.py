import json
import logging

import pytest

from kinship_tree.config import Config, _load_json_file, configure_logging, load_config
from kinship_tree.labels import ENGLISH, PERSIAN
from kinship_tree.models import Gender


def test_defaults():
    cfg = load_config(None)
    assert cfg == Config()
    assert cfg.vocabulary is ENGLISH
    assert cfg.resolver_options() == {
        "vocabulary": ENGLISH,
        "default_gender": Gender.MALE,
        "fuzzy_spouse_match": True,
    }


def test_load_config_from_file(tmp_path):
    cfgfile = tmp_path / "cfg.json"
    data = {"language": "fa", "default_gender": "female", "fuzzy_spouse_match": False, "log_level": "debug"}
    cfgfile.write_text(json.dumps(data))
    cfg = load_config(str(cfgfile))
    assert cfg.vocabulary is PERSIAN
    assert cfg.default_gender is Gender.FEMALE
    assert cfg.fuzzy_spouse_match is False
    assert cfg.log_level == "DEBUG"


def test_env_overrides(tmp_path, monkeypatch):
    cfgfile = tmp_path / "cfg.json"
    cfgfile.write_text(json.dumps({"language": "en", "log_level": "WARNING"}))
    monkeypatch.setenv("KINSHIP_CONFIG", str(cfgfile))
    monkeypatch.setenv("KINSHIP_LANGUAGE", "fa")
    monkeypatch.setenv("KINSHIP_FUZZY_SPOUSE_MATCH", "no")
    cfg = load_config(None)
    assert cfg.language == "fa"
    assert cfg.fuzzy_spouse_match is False
    assert cfg.log_level == "WARNING"


def test_explicit_path_ignores_env(tmp_path, monkeypatch):
    cfgfile = tmp_path / "cfg.json"
    cfgfile.write_text(json.dumps({"language": "en"}))
    monkeypatch.setenv("KINSHIP_LANGUAGE", "fa")
    assert load_config(str(cfgfile)).language == "en"


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("KINSHIP_LANGUAGE", "xx")
    with pytest.raises(ValueError):
        load_config(None)
    monkeypatch.delenv("KINSHIP_LANGUAGE")
    monkeypatch.setenv("KINSHIP_DEFAULT_GENDER", "unknown")
    with pytest.raises(ValueError):
        load_config(None)


def test_unreadable_file_falls_back_to_defaults(tmp_path, caplog):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with caplog.at_level(logging.WARNING):
        assert _load_json_file(bad) is None
        cfg = load_config(str(tmp_path / "missing.json"))
    assert cfg == Config()
    assert "could not read" in caplog.text


def test_configure_logging_accepts_unknown_level():
    configure_logging(Config(log_level="NOT_A_LEVEL"))
