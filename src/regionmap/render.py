"""Static PNG snapshot of the map as the camera currently frames it."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from shapely.affinity import affine_transform

from .layers import VISIBLE
from .models import LEVEL_DEFAULT, CameraTransform
from .projection import iter_polygons
from .widget import MapWidget

_LOGGER = logging.getLogger("regionmap.render")


def render_snapshot(widget: MapWidget, output_path: Path, *, dpi: int = 100) -> Path:
    """Draw the visible states and mounted districts into `output_path`."""
    plt = _require_matplotlib()
    cfg = widget.cfg
    width = cfg.canvas.width
    height = cfg.canvas.height
    state = widget.state
    camera = widget.camera.transform

    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
    try:
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_axis_off()

        drawn = 0
        for feature, props in widget.states_layer.entries(state):
            if props.visibility != VISIBLE:
                continue
            alpha = 1.0
            if state.level == LEVEL_DEFAULT and not widget.store.is_interactive(feature.name):
                alpha = cfg.style.non_interactive_opacity
            drawn += _draw_geometry(
                ax,
                widget.projection.project_geometry(feature.geometry),
                camera,
                fill=props.fill,
                stroke=cfg.style.stroke,
                line_width=2.0 if props.selected else 1.0,
                alpha=alpha,
            )

        for feature, props in widget.districts_layer.entries(state):
            if props.visibility != VISIBLE:
                continue
            drawn += _draw_geometry(
                ax,
                widget.projection.project_geometry(feature.geometry),
                camera,
                fill=props.fill,
                stroke=cfg.style.stroke,
                line_width=0.5 if props.selected else 0.3,
                alpha=1.0,
            )

        ax.text(12, height - 14, state.label, fontsize=14, fontweight="bold", color="#222222")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png")
        _LOGGER.info("Rendered %d polygons for '%s' to %s", drawn, state.label, output_path)
        return output_path
    finally:
        plt.close(fig)


def _draw_geometry(
    ax: Any,
    geometry: Any,
    camera: CameraTransform,
    *,
    fill: str,
    stroke: str,
    line_width: float,
    alpha: float,
) -> int:
    framed = affine_transform(geometry, [camera.k, 0.0, 0.0, camera.k, camera.x, camera.y])
    count = 0
    for polygon in iter_polygons(framed):
        xs, ys = polygon.exterior.xy
        ax.fill(list(xs), list(ys), facecolor=fill, edgecolor=stroke, linewidth=line_width, alpha=alpha)
        count += 1
    return count


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for map snapshots") from exc
    return plt
