from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from regionmap.config import load_config

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config.yaml"


def _write_variant(tmp_path: Path, section: str, key: str, value) -> Path:
    raw = yaml.safe_load(REPO_CONFIG.read_text(encoding="utf-8"))
    raw[section][key] = value
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw), encoding="utf-8")
    return path


def test_repository_config_loads() -> None:
    cfg = load_config(REPO_CONFIG)
    assert cfg.canvas.width == 900
    assert cfg.canvas.height == 700
    assert cfg.bounds.west == pytest.approx(85.8)
    assert cfg.bounds.north == pytest.approx(29.46)
    assert cfg.transition.duration_ms == 750.0
    assert cfg.transition.state_fill == pytest.approx(0.85)
    assert cfg.transition.district_fill == pytest.approx(0.5)
    assert cfg.culling.exit_delay_ms == 800.0
    assert cfg.regions.default_label == "Northeast India"
    assert cfg.regions.non_interactive == ("West Bengal",)
    assert cfg.session.storage_key == "sangai_map_state"
    assert cfg.navigation.default_path == "/northeast"


def test_relative_paths_resolve_against_config_dir() -> None:
    cfg = load_config(REPO_CONFIG)
    assert cfg.paths.states_geojson == REPO_CONFIG.parent / "data" / "states.geojson"
    assert cfg.paths.session_file.parent in cfg.paths.build_directories


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    ("section", "key", "value"),
    [
        ("transition", "state_fill", 1.5),
        ("transition", "district_fill", 0),
        ("transition", "scale_min", 30.0),
        ("bounds", "west", 100.0),
        ("canvas", "padding", 400),
        ("culling", "exit_delay_ms", -1),
        ("navigation", "default_path", "northeast"),
        ("regions", "non_interactive", "West Bengal"),
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, section: str, key: str, value) -> None:
    with pytest.raises(ValueError):
        load_config(_write_variant(tmp_path, section, key, value))


def test_top_level_must_be_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)
