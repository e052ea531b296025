import json

import pytest

from pycomputeragent.config.loader import load_behavior_config, web_tools_from_env


def write_json(path, obj):
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


def test_defaults(tmp_path):
    cfg = load_behavior_config(cwd=tmp_path, env={})
    assert cfg.max_depth == 10
    assert cfg.max_retries == 3
    assert cfg.context_file == "./tmp/ASSISTANT.md"
    assert cfg.shell.timeout == 30
    assert cfg.web_search.enabled is True
    assert cfg.web_fetch.enabled is False
    assert cfg.loaded_from is None


def test_project_file_then_explicit_override(tmp_path):
    write_json(tmp_path / ".pycomputeragent.json", {
        "max_depth": 4,
        "shell": {"timeout": 5, "max_output_bytes": 2048},
        "web_search": {"max_uses": 3},
    })
    explicit = write_json(tmp_path / "override.json", {"max_depth": 7, "web_search": {"enabled": False}})

    cfg = load_behavior_config(cwd=tmp_path, env={})
    assert cfg.max_depth == 4
    assert cfg.shell.timeout == 5
    assert cfg.shell.max_output_bytes == 2048
    assert cfg.loaded_from == tmp_path / ".pycomputeragent.json"

    cfg = load_behavior_config(cwd=tmp_path, explicit_path=explicit, env={})
    assert cfg.max_depth == 7
    # nested blocks merge key by key
    assert cfg.web_search.max_uses == 3
    assert cfg.web_search.enabled is False


def test_invalid_values_fall_back_to_defaults(tmp_path):
    write_json(tmp_path / "pycomputeragent.json", {"max_depth": -1, "max_retries": True, "shell": {"timeout": "soon"}})
    cfg = load_behavior_config(cwd=tmp_path, env={})
    assert cfg.max_depth == 10
    assert cfg.max_retries == 3
    assert cfg.shell.timeout == 30


def test_explicit_path_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_behavior_config(cwd=tmp_path, explicit_path=tmp_path / "missing.json", env={})
    bad = tmp_path / "list.json"
    bad.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_behavior_config(cwd=tmp_path, explicit_path=bad, env={})


def test_environment_wins(tmp_path):
    write_json(tmp_path / ".pycomputeragent.json", {"web_fetch": {"enabled": False, "max_uses": 2}})
    env = {
        "WEB_FETCH_ENABLED": "true",
        "WEB_FETCH_MAX_USES": "5",
        "WEB_FETCH_ENABLE_CITATIONS": "true",
        "WEB_SEARCH_ALLOWED_DOMAINS": "example.com, docs.python.org",
        "WEB_SEARCH_USER_LOCATION_CITY": "Berlin",
    }
    cfg = load_behavior_config(cwd=tmp_path, env=env)
    assert cfg.web_fetch.enabled is True
    assert cfg.web_fetch.options() == {"max_uses": 5, "citations": {"enabled": True}}
    assert cfg.web_search.options() == {
        "allowed_domains": ["example.com", "docs.python.org"],
        "user_location": {"type": "approximate", "city": "Berlin"},
    }


def test_env_ignores_bad_numbers():
    assert web_tools_from_env({"WEB_SEARCH_MAX_USES": "lots", "WEB_FETCH_MAX_USES": "0"}) == {}
