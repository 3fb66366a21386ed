from pathlib import Path

import pytest

from scorekeeper.config import load_settings, read_settings


def test_load_settings(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("challenge: sample\ntable: 3\ndata_dir: scores\n")
    cfg = load_settings(p)
    assert cfg.challenge == "sample"
    assert cfg.table == "3"
    assert cfg.data_dir == tmp_path / "scores"


def test_load_settings_defaults(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("")
    cfg = load_settings(p)
    assert cfg.challenge == "sample"
    assert cfg.table is None
    assert cfg.data_dir == tmp_path / "data"


def test_load_settings_rejects_unknown_keys(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("colour: blue\n")
    with pytest.raises(ValueError, match="Invalid settings schema"):
        load_settings(p)


def test_load_settings_rejects_bad_challenge(tmp_path):
    p = tmp_path / "settings.yaml"
    p.write_text("challenge: ../../etc\n")
    with pytest.raises(ValueError):
        load_settings(p)


def test_read_settings_falls_back(tmp_path, log_messages):
    cfg = read_settings(tmp_path / "missing.yaml")
    assert cfg.challenge == "sample"
    assert cfg.data_dir == Path(tmp_path / "data")
    assert any(m.startswith("unable to load settings") for m in log_messages)
