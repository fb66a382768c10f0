# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from site_harvest.config import EngineConfig, load_config

REPO_ROOT = Path(__file__).resolve().parents[1]


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("user_agent: Agent/1.0\nmax_pages_ceiling: 50", ".yaml", None),
        ("user_agent: Agent/1.0\nmax_pages_ceiling: 50", ".yml", None),
        (json.dumps({"user_agent": "Agent/1.0", "max_pages_ceiling": 50}), ".json", None),
        ("user_agent: [unclosed", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ('{"user_agent": ', ".json", ValueError),
        ("[1, 2]", ".json", TypeError),
        ("unknown_key: 1", ".yaml", ValidationError),
        ("page_workers: 0", ".yaml", ValidationError),
        ("follow_scope: everywhere", ".yaml", ValidationError),
        ("user_agent: x", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, EngineConfig)
        assert cfg.user_agent == "Agent/1.0"
        assert cfg.max_pages_ceiling == 50


def test_load_config_default_missing_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config(None) == EngineConfig()


def test_load_config_default_file_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("page_workers: 3\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert load_config(None).page_workers == 3


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_bundled_default_yaml_matches_model_defaults():
    assert load_config(REPO_ROOT / "configs" / "default.yaml") == EngineConfig()


def test_default_pages_above_ceiling_rejected():
    with pytest.raises(ValidationError):
        EngineConfig(default_max_pages=20, max_pages_ceiling=10)


def test_catalog_path_must_exist(tmp_path):
    with pytest.raises(FileNotFoundError):
        EngineConfig(catalog_path=tmp_path / "missing")


def test_config_is_frozen():
    cfg = EngineConfig()
    with pytest.raises(ValidationError):
        cfg.page_workers = 4
