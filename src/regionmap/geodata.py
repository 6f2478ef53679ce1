"""Static boundary geometry loading and lookup."""

from __future__ import annotations

import json
import logging
import math
import unicodedata
from pathlib import Path
from typing import Any, Iterable, Sequence

from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.polygon import orient

from .models import FEATURE_DISTRICT, FEATURE_STATE, DataCorrections, Feature

_LOGGER = logging.getLogger("regionmap.geodata")


def _first_existing_column(columns: Iterable[str], candidates: Sequence[str]) -> str | None:
    existing = {str(col).lower(): str(col) for col in columns}
    for candidate in candidates:
        match = existing.get(candidate.lower())
        if match:
            return match
    return None


def names_match(left: str, right: str) -> bool:
    return normalize_name(left) == normalize_name(right)


def normalize_name(value: str) -> str:
    folded = unicodedata.normalize("NFKD", value)
    without_marks = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return "".join(ch for ch in without_marks.casefold() if ch.isalnum())


class GeoRepository:
    """Read-only access to the state and district boundary collections."""

    def __init__(
        self,
        states_path: Path,
        districts_path: Path,
        *,
        state_name_fields: Sequence[str] = ("ST_NM", "NAME_1"),
        district_name_fields: Sequence[str] = ("DISTRICT", "NAME_2"),
        parent_fields: Sequence[str] = ("ST_NM", "NAME_1"),
        corrections: DataCorrections | None = None,
    ) -> None:
        self.states_path = states_path
        self.districts_path = districts_path
        self.state_name_fields = tuple(state_name_fields)
        self.district_name_fields = tuple(district_name_fields)
        self.parent_fields = tuple(parent_fields)
        self.corrections = corrections or DataCorrections()
        self._states: tuple[Feature, ...] | None = None
        self._districts: tuple[Feature, ...] | None = None
        self.lookups = 0

    @property
    def states(self) -> tuple[Feature, ...]:
        if self._states is None:
            self._states = self._load_states()
        return self._states

    @property
    def districts(self) -> tuple[Feature, ...]:
        if self._districts is None:
            self._districts = self._load_districts()
        return self._districts

    def find_state(self, name: str) -> Feature | None:
        self.lookups += 1
        canonical = self.corrections.canonical_name(name)
        return next((f for f in self.states if names_match(f.name, canonical)), None)

    def find_district(self, name: str) -> Feature | None:
        self.lookups += 1
        return next((f for f in self.districts if names_match(f.name, name)), None)

    def find(self, feature: Feature) -> Feature | None:
        if feature.is_district:
            return self.find_district(feature.name)
        return self.find_state(feature.name)

    def districts_of(self, state_name: str) -> tuple[Feature, ...]:
        return tuple(
            f for f in self.districts if f.parent is not None and names_match(f.parent, state_name)
        )

    def _load_states(self) -> tuple[Feature, ...]:
        frame = self._read_frame(self.states_path)
        name_col = _first_existing_column(frame.columns, self.state_name_fields)
        if name_col is None:
            cols = ", ".join(str(c) for c in frame.columns)
            raise ValueError(
                f"Could not detect state name column in {self.states_path}. "
                f"Available columns: {cols}"
            )
        features: list[Feature] = []
        for row in _iter_rows(frame):
            name = _clean_str(row.get(name_col))
            geometry = _normalize_geometry(row.get("geometry"))
            if name is None or geometry is None:
                continue
            features.append(
                Feature(
                    name=self.corrections.canonical_name(name),
                    kind=FEATURE_STATE,
                    geometry=geometry,
                    properties=_clean_properties(row),
                )
            )
        _LOGGER.debug("Loaded %d state features from %s", len(features), self.states_path)
        return tuple(features)

    def _load_districts(self) -> tuple[Feature, ...]:
        frame = self._read_frame(self.districts_path)
        name_col = _first_existing_column(frame.columns, self.district_name_fields)
        parent_col = _first_existing_column(frame.columns, self.parent_fields)
        if name_col is None or parent_col is None:
            cols = ", ".join(str(c) for c in frame.columns)
            raise ValueError(
                f"Could not detect district name/parent columns in {self.districts_path}. "
                f"Available columns: {cols}"
            )
        features: list[Feature] = []
        for row in _iter_rows(frame):
            name = _clean_str(row.get(name_col))
            geometry = _normalize_geometry(row.get("geometry"))
            if name is None or geometry is None:
                continue
            parent = self.corrections.district_parent(name, _clean_str(row.get(parent_col)))
            features.append(
                Feature(
                    name=name,
                    kind=FEATURE_DISTRICT,
                    geometry=geometry,
                    parent=parent,
                    properties=_clean_properties(row),
                )
            )
        _LOGGER.debug("Loaded %d district features from %s", len(features), self.districts_path)
        return tuple(features)

    def _read_frame(self, path: Path) -> Any:
        gpd = self._require_geopandas()
        if not path.exists():
            raise FileNotFoundError(f"Boundary file not found: {path}")
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        if not isinstance(raw, dict) or not isinstance(raw.get("features"), list):
            raise ValueError(f"Expected a GeoJSON FeatureCollection in {path}")
        if not raw["features"]:
            return gpd.GeoDataFrame({"geometry": []}, geometry="geometry")
        return gpd.GeoDataFrame.from_features(raw["features"])

    @staticmethod
    def _require_geopandas() -> Any:
        try:
            import geopandas as gpd
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError("geopandas is required for boundary data loading") from exc
        return gpd


def _iter_rows(frame: Any) -> Iterable[dict[str, Any]]:
    columns = [str(col) for col in frame.columns]
    for values in frame.itertuples(index=False, name=None):
        yield dict(zip(columns, values))


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _clean_properties(row: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in row.items():
        if key == "geometry" or value is None:
            continue
        if hasattr(value, "item"):
            value = value.item()
        if isinstance(value, float) and math.isnan(value):
            continue
        if isinstance(value, (str, int, float, bool)):
            out[key] = value
        else:
            out[key] = str(value)
    return out


def _normalize_geometry(geometry: Any) -> Any | None:
    """Drop empty shapes and give polygon rings a consistent winding order."""
    if geometry is None or bool(getattr(geometry, "is_empty", True)):
        return None
    if isinstance(geometry, Polygon):
        return orient(geometry, sign=1.0)
    if isinstance(geometry, MultiPolygon):
        return MultiPolygon([orient(part, sign=1.0) for part in geometry.geoms])
    return geometry
