from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml
from shapely.geometry import box, mapping

from regionmap.config import AppConfig, load_config
from regionmap.geodata import GeoRepository
from regionmap.models import FEATURE_DISTRICT, FEATURE_STATE, Feature
from regionmap.validate import build_repository
from regionmap.widget import MapWidget

# (name, west, south, east, north)
STATES = [
    ("Meghalaya", 89.8, 25.0, 92.8, 26.1),
    ("Assam", 89.7, 26.1, 96.0, 27.9),
    ("Arunachal Pradesh", 91.5, 27.9, 97.4, 29.4),
    ("West Bengal", 86.0, 21.6, 89.5, 27.2),
]

# (name, raw parent, west, south, east, north)
DISTRICTS = [
    ("West Garo Hills", "Meghalaya", 89.8, 25.0, 90.6, 26.1),
    ("East Khasi Hills", "Meghalaya", 91.6, 25.1, 92.2, 25.7),
    ("Kamrup", "Assam", 91.0, 26.1, 92.0, 26.6),
    ("Tawang", "Arunanchal Pradesh", 91.5, 27.9, 92.3, 28.4),
]


def _collection(features: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": features}


def _polygon_feature(properties: dict[str, Any], bounds: tuple[float, ...]) -> dict[str, Any]:
    return {"type": "Feature", "properties": properties, "geometry": mapping(box(*bounds))}


def write_geojson(path: Path, features: list[dict[str, Any]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(_collection(features)), encoding="utf-8")
    return path


def config_mapping() -> dict[str, Any]:
    return {
        "paths": {
            "states_geojson": "data/states.geojson",
            "districts_geojson": "data/districts.geojson",
            "corrections": "data/corrections.yaml",
            "session_file": "build/session/session.json",
            "render_dir": "build/render",
            "logs_dir": "build/logs",
        },
        "canvas": {"width": 900, "height": 700, "padding": 40},
        "bounds": {"west": 85.8, "east": 97.41, "south": 21.5, "north": 29.46},
        "projection": {"crs": "EPSG:3857"},
        "regions": {
            "default_label": "Northeast India",
            "non_interactive": ["West Bengal"],
            "state_name_fields": ["ST_NM", "NAME_1"],
            "district_name_fields": ["DISTRICT", "NAME_2"],
            "parent_fields": ["ST_NM", "NAME_1"],
        },
        "transition": {
            "duration_ms": 750,
            "state_fill": 0.85,
            "district_fill": 0.5,
            "scale_min": 0.5,
            "scale_max": 20.0,
            "frame_interval_ms": 16,
        },
        "culling": {"exit_delay_ms": 800},
        "navigation": {"slug_separator": "_", "default_path": "/northeast"},
        "session": {"storage_key": "sangai_map_state"},
        "style": {
            "default_fill": "#e8f4ea",
            "selected_state_fill": "#FBEAAF",
            "selected_district_fill": "#34ab48",
            "stroke": "#000000",
            "non_interactive_opacity": 0.3,
            "state_colors": {"Meghalaya": "#bfe0f2", "Assam": "#f6d6ad"},
        },
    }


@pytest.fixture
def region_dir(tmp_path: Path) -> Path:
    write_geojson(
        tmp_path / "data" / "states.geojson",
        [_polygon_feature({"ST_NM": name}, bounds) for name, *bounds in STATES],
    )
    write_geojson(
        tmp_path / "data" / "districts.geojson",
        [
            _polygon_feature({"DISTRICT": name, "ST_NM": parent}, bounds)
            for name, parent, *bounds in DISTRICTS
        ],
    )
    (tmp_path / "config.yaml").write_text(yaml.safe_dump(config_mapping()), encoding="utf-8")
    return tmp_path


@pytest.fixture
def config_path(region_dir: Path) -> Path:
    return region_dir / "config.yaml"


@pytest.fixture
def app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


@pytest.fixture
def repository(app_config: AppConfig) -> GeoRepository:
    return build_repository(app_config)


@pytest.fixture
def widget(app_config: AppConfig, repository: GeoRepository) -> MapWidget:
    return MapWidget(app_config, repository)


@pytest.fixture
def box_feature() -> Callable[..., Feature]:
    def _make(
        name: str,
        west: float,
        south: float,
        east: float,
        north: float,
        *,
        parent: str | None = None,
    ) -> Feature:
        kind = FEATURE_DISTRICT if parent is not None else FEATURE_STATE
        return Feature(name=name, kind=kind, geometry=box(west, south, east, north), parent=parent)

    return _make
