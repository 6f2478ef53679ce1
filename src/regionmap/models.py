"""Domain models shared across the map view modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

LEVEL_DEFAULT = "default"
LEVEL_STATE = "state"
LEVEL_DISTRICT = "district"
LEVELS = (LEVEL_DEFAULT, LEVEL_STATE, LEVEL_DISTRICT)

FEATURE_STATE = "state"
FEATURE_DISTRICT = "district"

CHANGE_RETARGET = "retarget"
CHANGE_COMMIT = "commit"
CHANGE_RESET = "reset"
CHANGE_RESTORE = "restore"


def _optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string or null for '{field_name}'")
    return value


def _geometry_from_geojson(raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise ValueError("Expected mapping for feature 'geometry'")
    try:
        return shape(raw)
    except (ShapelyError, KeyError, TypeError, IndexError) as exc:
        raise ValueError(f"Invalid feature geometry: {exc}") from exc


@dataclass(frozen=True, slots=True)
class Feature:
    """One boundary polygon from the static geometry source.

    `geometry` is a shapely geometry in lon/lat. `parent` is the canonical
    parent-region name for districts (after data corrections) and `None` for
    states.
    """

    name: str
    kind: str
    geometry: Any
    parent: str | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_district(self) -> bool:
        return self.kind == FEATURE_DISTRICT

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "name": self.name,
            "kind": self.kind,
            "parent": self.parent,
            "properties": dict(self.properties),
            "geometry": mapping(self.geometry) if self.geometry is not None else None,
        }

    @classmethod
    def from_geojson(cls, data: Mapping[str, Any]) -> Feature:
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected mapping for feature, got {type(data).__name__}")
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Expected non-empty string for feature 'name'")
        kind = data.get("kind")
        if kind not in (FEATURE_STATE, FEATURE_DISTRICT):
            raise ValueError(f"Invalid feature kind: {kind!r}")
        geometry_raw = data.get("geometry")
        geometry = _geometry_from_geojson(geometry_raw) if geometry_raw is not None else None
        properties = data.get("properties") or {}
        if not isinstance(properties, Mapping):
            raise ValueError("Expected mapping for feature 'properties'")
        return cls(
            name=name,
            kind=kind,
            geometry=geometry,
            parent=_optional_str(data.get("parent"), "parent"),
            properties=dict(properties),
        )


@dataclass(frozen=True, slots=True)
class ViewState:
    """Immutable snapshot of the map drill-down state."""

    level: str
    selected_state: str | None
    selected_district: str | None
    label: str
    zoom_target: Feature | None
    transition_sequence: int
    retained_parent: Feature | None = None

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"Unknown level: {self.level!r}")
        if self.level == LEVEL_DEFAULT and (
            self.selected_state is not None or self.selected_district is not None
        ):
            raise ValueError("Default level cannot carry a state or district selection")
        if self.level == LEVEL_DISTRICT and self.selected_state is None:
            raise ValueError("District level requires a selected state")
        if self.level != LEVEL_DISTRICT and self.selected_district is not None:
            raise ValueError("A district selection requires the district level")
        if self.transition_sequence < 0:
            raise ValueError("transition_sequence must be >= 0")

    @classmethod
    def initial(cls, default_label: str, *, transition_sequence: int = 0) -> ViewState:
        return cls(
            level=LEVEL_DEFAULT,
            selected_state=None,
            selected_district=None,
            label=default_label,
            zoom_target=None,
            transition_sequence=transition_sequence,
            retained_parent=None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "selected_state": self.selected_state,
            "selected_district": self.selected_district,
            "label": self.label,
            "zoom_target": self.zoom_target.to_geojson() if self.zoom_target else None,
            "transition_sequence": self.transition_sequence,
            "retained_parent": (
                self.retained_parent.to_geojson() if self.retained_parent else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ViewState:
        label = data.get("label")
        if not isinstance(label, str) or not label.strip():
            raise ValueError("Expected non-empty string for 'label'")
        sequence = data.get("transition_sequence")
        if not isinstance(sequence, int) or isinstance(sequence, bool):
            raise ValueError("Expected integer for 'transition_sequence'")
        target_raw = data.get("zoom_target")
        retained_raw = data.get("retained_parent")
        return cls(
            level=str(data.get("level")),
            selected_state=_optional_str(data.get("selected_state"), "selected_state"),
            selected_district=_optional_str(data.get("selected_district"), "selected_district"),
            label=label,
            zoom_target=Feature.from_geojson(target_raw) if target_raw is not None else None,
            transition_sequence=sequence,
            retained_parent=(
                Feature.from_geojson(retained_raw) if retained_raw is not None else None
            ),
        )


@dataclass(frozen=True, slots=True)
class ViewStateChange:
    """What kind of mutation produced a snapshot, and the request it belongs to."""

    kind: str
    sequence: int


@dataclass(frozen=True, slots=True)
class TooltipState:
    content: str = ""
    x: float = 0.0
    y: float = 0.0
    visible: bool = False


@dataclass(frozen=True, slots=True)
class CameraTransform:
    """Uniform scale `k` followed by translation `(x, y)` in canvas pixels."""

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        return (self.x + self.k * px, self.y + self.k * py)

    def interpolate(self, other: CameraTransform, t: float) -> CameraTransform:
        return CameraTransform(
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
            k=self.k + (other.k - self.k) * t,
        )

    def to_svg(self) -> str:
        return f"translate({self.x:g},{self.y:g}) scale({self.k:g})"


IDENTITY = CameraTransform()


@dataclass(frozen=True, slots=True)
class ShapeProps:
    """Inputs of one shape render; equal props mean the shape is not redrawn."""

    shape_id: str
    selected: bool
    fill: str
    path_d: str
    on_select: Callable[[], None] | None
    visibility: str = ""


def _str_mapping(value: Any, field_name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    out: dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not key.strip():
            raise ValueError(f"Expected non-empty string key in '{field_name}'")
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"Expected non-empty string for '{field_name}.{key}'")
        out[key.strip()] = item.strip()
    return out


@dataclass(frozen=True, slots=True)
class DataCorrections:
    """Static cleaning rules for known defects in the boundary source data."""

    parent_aliases: Mapping[str, str] = field(default_factory=dict)
    district_parents: Mapping[str, str] = field(default_factory=dict)

    def canonical_name(self, name: str) -> str:
        return self.parent_aliases.get(name, name)

    def district_parent(self, district_name: str, raw_parent: str | None) -> str | None:
        reassigned = self.district_parents.get(district_name)
        if reassigned is not None:
            return self.canonical_name(reassigned)
        if raw_parent is None:
            return None
        return self.canonical_name(raw_parent)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> DataCorrections:
        return cls(
            parent_aliases=_str_mapping(data.get("parent_aliases"), "parent_aliases"),
            district_parents=_str_mapping(data.get("district_parents"), "district_parents"),
        )
