"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, cast

import yaml


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    states_geojson: Path
    districts_geojson: Path
    corrections: Path
    session_file: Path
    render_dir: Path
    logs_dir: Path

    @property
    def required_input_files(self) -> tuple[Path, ...]:
        return (self.states_geojson, self.districts_geojson)

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.session_file.parent, self.render_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            states_geojson=_path_from_cfg(raw.get("states_geojson"), "paths.states_geojson", root_dir),
            districts_geojson=_path_from_cfg(
                raw.get("districts_geojson"), "paths.districts_geojson", root_dir
            ),
            corrections=_path_from_cfg(raw.get("corrections"), "paths.corrections", root_dir),
            session_file=_path_from_cfg(raw.get("session_file"), "paths.session_file", root_dir),
            render_dir=_path_from_cfg(raw.get("render_dir"), "paths.render_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class CanvasConfig:
    width: int
    height: int
    padding: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CanvasConfig:
        width = _int(raw.get("width"), "canvas.width")
        height = _int(raw.get("height"), "canvas.height")
        padding = _int(raw.get("padding", 0), "canvas.padding")
        if width <= 0 or height <= 0:
            raise ValueError("canvas.width and canvas.height must be > 0")
        if padding < 0 or padding * 2 >= min(width, height):
            raise ValueError("canvas.padding must be >= 0 and smaller than half the canvas")
        return cls(width=width, height=height, padding=padding)


@dataclass(frozen=True, slots=True)
class BoundsConfig:
    west: float
    east: float
    south: float
    north: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BoundsConfig:
        west = _float(raw.get("west"), "bounds.west")
        east = _float(raw.get("east"), "bounds.east")
        south = _float(raw.get("south"), "bounds.south")
        north = _float(raw.get("north"), "bounds.north")
        if west >= east:
            raise ValueError("bounds.west must be smaller than bounds.east")
        if south >= north:
            raise ValueError("bounds.south must be smaller than bounds.north")
        if south < -85.0 or north > 85.0:
            raise ValueError("bounds latitude must stay within Web Mercator limits (-85..85)")
        return cls(west=west, east=east, south=south, north=north)


@dataclass(frozen=True, slots=True)
class ProjectionConfig:
    crs: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ProjectionConfig:
        return cls(crs=_str(raw.get("crs", "EPSG:3857"), "projection.crs"))


@dataclass(frozen=True, slots=True)
class RegionsConfig:
    default_label: str
    non_interactive: tuple[str, ...]
    state_name_fields: tuple[str, ...]
    district_name_fields: tuple[str, ...]
    parent_fields: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RegionsConfig:
        non_interactive_raw = raw.get("non_interactive", [])
        return cls(
            default_label=_str(raw.get("default_label"), "regions.default_label"),
            non_interactive=(
                ()
                if non_interactive_raw is None
                else _str_list(non_interactive_raw, "regions.non_interactive")
            ),
            state_name_fields=_str_list(raw.get("state_name_fields"), "regions.state_name_fields"),
            district_name_fields=_str_list(
                raw.get("district_name_fields"), "regions.district_name_fields"
            ),
            parent_fields=_str_list(raw.get("parent_fields"), "regions.parent_fields"),
        )


@dataclass(frozen=True, slots=True)
class TransitionConfig:
    duration_ms: float
    state_fill: float
    district_fill: float
    scale_min: float
    scale_max: float
    frame_interval_ms: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TransitionConfig:
        duration_ms = _float(raw.get("duration_ms"), "transition.duration_ms")
        state_fill = _float(raw.get("state_fill"), "transition.state_fill")
        district_fill = _float(raw.get("district_fill"), "transition.district_fill")
        scale_min = _float(raw.get("scale_min", 0.5), "transition.scale_min")
        scale_max = _float(raw.get("scale_max", 20.0), "transition.scale_max")
        frame_interval_ms = _float(raw.get("frame_interval_ms", 16.0), "transition.frame_interval_ms")
        if duration_ms <= 0:
            raise ValueError("transition.duration_ms must be > 0")
        for name, value in (("state_fill", state_fill), ("district_fill", district_fill)):
            if value <= 0 or value > 1:
                raise ValueError(f"transition.{name} must be in (0, 1]")
        if scale_min <= 0 or scale_min > scale_max:
            raise ValueError("transition.scale_min must be > 0 and <= transition.scale_max")
        if frame_interval_ms <= 0:
            raise ValueError("transition.frame_interval_ms must be > 0")
        return cls(
            duration_ms=duration_ms,
            state_fill=state_fill,
            district_fill=district_fill,
            scale_min=scale_min,
            scale_max=scale_max,
            frame_interval_ms=frame_interval_ms,
        )


@dataclass(frozen=True, slots=True)
class CullingConfig:
    exit_delay_ms: float

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CullingConfig:
        exit_delay_ms = _float(raw.get("exit_delay_ms"), "culling.exit_delay_ms")
        if exit_delay_ms < 0:
            raise ValueError("culling.exit_delay_ms must be >= 0")
        return cls(exit_delay_ms=exit_delay_ms)


@dataclass(frozen=True, slots=True)
class NavigationConfig:
    slug_separator: str
    default_path: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> NavigationConfig:
        separator = raw.get("slug_separator", "_")
        if not isinstance(separator, str) or len(separator) != 1:
            raise ValueError("navigation.slug_separator must be a single character")
        default_path = _str(raw.get("default_path"), "navigation.default_path")
        if not default_path.startswith("/"):
            raise ValueError("navigation.default_path must start with '/'")
        return cls(slug_separator=separator, default_path=default_path)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    storage_key: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SessionConfig:
        return cls(storage_key=_str(raw.get("storage_key"), "session.storage_key"))


@dataclass(frozen=True, slots=True)
class StyleConfig:
    default_fill: str
    selected_state_fill: str
    selected_district_fill: str
    stroke: str
    non_interactive_opacity: float
    state_colors: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        colors_raw = raw.get("state_colors", {})
        if colors_raw is None:
            state_colors: dict[str, str] = {}
        elif isinstance(colors_raw, Mapping):
            state_colors = {
                _str(k, "style.state_colors key"): _str(v, f"style.state_colors.{k}")
                for k, v in colors_raw.items()
            }
        else:
            raise ValueError("Expected mapping for 'style.state_colors'")
        opacity = _float(raw.get("non_interactive_opacity", 0.3), "style.non_interactive_opacity")
        if opacity < 0 or opacity > 1:
            raise ValueError("style.non_interactive_opacity must be in [0, 1]")
        return cls(
            default_fill=_str(raw.get("default_fill"), "style.default_fill"),
            selected_state_fill=_str(raw.get("selected_state_fill"), "style.selected_state_fill"),
            selected_district_fill=_str(
                raw.get("selected_district_fill"), "style.selected_district_fill"
            ),
            stroke=_str(raw.get("stroke", "#000000"), "style.stroke"),
            non_interactive_opacity=opacity,
            state_colors=state_colors,
        )


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    canvas: CanvasConfig
    bounds: BoundsConfig
    projection: ProjectionConfig
    regions: RegionsConfig
    transition: TransitionConfig
    culling: CullingConfig
    navigation: NavigationConfig
    session: SessionConfig
    style: StyleConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        projection_raw = raw.get("projection")
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            canvas=CanvasConfig.from_mapping(_mapping(raw.get("canvas"), "canvas")),
            bounds=BoundsConfig.from_mapping(_mapping(raw.get("bounds"), "bounds")),
            projection=ProjectionConfig.from_mapping(
                {} if projection_raw is None else _mapping(projection_raw, "projection")
            ),
            regions=RegionsConfig.from_mapping(_mapping(raw.get("regions"), "regions")),
            transition=TransitionConfig.from_mapping(_mapping(raw.get("transition"), "transition")),
            culling=CullingConfig.from_mapping(_mapping(raw.get("culling"), "culling")),
            navigation=NavigationConfig.from_mapping(_mapping(raw.get("navigation"), "navigation")),
            session=SessionConfig.from_mapping(_mapping(raw.get("session"), "session")),
            style=StyleConfig.from_mapping(_mapping(raw.get("style"), "style")),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
