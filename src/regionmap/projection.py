"""Mercator projection fitted to the regional map canvas."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Any, Iterable

from shapely.affinity import affine_transform
from shapely.ops import transform as shapely_transform

from .config import AppConfig

ScreenBounds = tuple[float, float, float, float]


class MapProjection:
    """Project lon/lat geometry into canvas pixels (y grows downwards).

    The projection is centered on the configured regional bounds and scaled
    so the whole region fits the canvas minus its padding.
    """

    def __init__(
        self,
        *,
        west: float,
        east: float,
        south: float,
        north: float,
        width: int,
        height: int,
        padding: int = 0,
        crs: str = "EPSG:3857",
    ) -> None:
        self.width = width
        self.height = height
        self._transformer = _require_pyproj_transformer(crs)
        cx, cy = self._transformer.transform((west + east) / 2.0, (south + north) / 2.0)
        nw_x, nw_y = self._transformer.transform(west, north)
        se_x, se_y = self._transformer.transform(east, south)
        span_x = max(abs(se_x - nw_x), 1e-9)
        span_y = max(abs(se_y - nw_y), 1e-9)
        self.scale = min((width - 2 * padding) / span_x, (height - 2 * padding) / span_y)
        # x' = s*X + xoff ; y' = -s*Y + yoff
        self._matrix = [
            self.scale,
            0.0,
            0.0,
            -self.scale,
            width / 2.0 - self.scale * cx,
            height / 2.0 + self.scale * cy,
        ]

    @classmethod
    def from_config(cls, cfg: AppConfig) -> MapProjection:
        return cls(
            west=cfg.bounds.west,
            east=cfg.bounds.east,
            south=cfg.bounds.south,
            north=cfg.bounds.north,
            width=cfg.canvas.width,
            height=cfg.canvas.height,
            padding=cfg.canvas.padding,
            crs=cfg.projection.crs,
        )

    def project_point(self, lon: float, lat: float) -> tuple[float, float]:
        x, y = self._transformer.transform(float(lon), float(lat))
        a, _, _, e, xoff, yoff = self._matrix
        return (a * float(x) + xoff, e * float(y) + yoff)

    def project_geometry(self, geometry: Any) -> Any:
        projected = shapely_transform(self._transformer.transform, geometry)
        return affine_transform(projected, self._matrix)

    def screen_bounds(self, geometry: Any) -> ScreenBounds | None:
        """Canvas-space bounding box, or `None` when it is unusable."""
        if geometry is None or bool(getattr(geometry, "is_empty", True)):
            return None
        x0, y0, x1, y1 = (float(v) for v in self.project_geometry(geometry).bounds)
        if not all(math.isfinite(v) for v in (x0, y0, x1, y1)):
            return None
        if x1 <= x0 or y1 <= y0:
            return None
        if (x1 - x0) > self.width * 10 or (y1 - y0) > self.height * 10:
            return None
        return (x0, y0, x1, y1)

    def path_data(self, geometry: Any) -> str:
        """SVG path `d` attribute for a polygonal geometry."""
        if geometry is None or bool(getattr(geometry, "is_empty", True)):
            return ""
        projected = self.project_geometry(geometry)
        parts: list[str] = []
        for polygon in iter_polygons(projected):
            for ring in (polygon.exterior, *polygon.interiors):
                coords = list(ring.coords)
                if len(coords) < 3:
                    continue
                head = "M" + _fmt_point(coords[0])
                tail = "".join("L" + _fmt_point(pt) for pt in coords[1:-1])
                parts.append(head + tail + "Z")
        return "".join(parts)


def iter_polygons(geometry: Any) -> Iterable[Any]:
    if geometry.geom_type == "Polygon":
        return (geometry,)
    if geometry.geom_type in {"MultiPolygon", "GeometryCollection"}:
        return tuple(part for part in geometry.geoms if part.geom_type == "Polygon")
    return ()


def _fmt_point(point: tuple[float, ...]) -> str:
    return f"{point[0]:.2f},{point[1]:.2f}"


@lru_cache(maxsize=4)
def _require_pyproj_transformer(crs: str) -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for map projection") from exc
    return Transformer.from_crs("EPSG:4326", crs, always_xy=True)
