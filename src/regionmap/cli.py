"""CLI entrypoint for the regionmap view-state machine."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config
from .render import render_snapshot
from .session import FileSessionStorage
from .util import ensure_directories, setup_logging
from .validate import Validator, build_repository, format_report_lines
from .widget import MapWidget

LOGGER = logging.getLogger("regionmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="regionmap",
        description="Northeast India region map view-state machine.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    validate_p = subparsers.add_parser("validate", help="Validate config and boundary files.")
    add_common(validate_p)

    show_p = subparsers.add_parser("show", help="Print the current view state as JSON.")
    add_common(show_p)

    state_p = subparsers.add_parser("select-state", help="Zoom into a state.")
    add_common(state_p)
    state_p.add_argument("name", help="State name as it appears in the boundary data.")

    district_p = subparsers.add_parser(
        "select-district",
        help="Zoom into a district of the selected state.",
    )
    add_common(district_p)
    district_p.add_argument("name", help="District name as it appears in the boundary data.")

    back_p = subparsers.add_parser("back", help="Go up one level.")
    add_common(back_p)

    reset_p = subparsers.add_parser("reset", help="Return to the default view and clear the session.")
    add_common(reset_p)

    explore_p = subparsers.add_parser("explore", help="Print the route for the current selection.")
    add_common(explore_p)

    render_p = subparsers.add_parser("render", help="Render the current view to PNG.")
    add_common(render_p)
    render_p.add_argument(
        "--output",
        default=None,
        help="Output PNG path. Defaults to <render_dir>/map_<level>.png.",
    )
    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "regionmap.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_validate(cfg: AppConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _open_widget(cfg: AppConfig) -> MapWidget:
    storage = FileSessionStorage(cfg.paths.session_file)
    widget = MapWidget(cfg, build_repository(cfg), storage=storage)
    widget.settle()
    return widget


def _print_state(widget: MapWidget) -> None:
    state = widget.state
    payload = {
        "level": state.level,
        "selected_state": state.selected_state,
        "selected_district": state.selected_district,
        "label": state.label,
        "transition_sequence": state.transition_sequence,
        "transform": widget.camera.transform.to_svg(),
    }
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


def _run_show(cfg: AppConfig) -> int:
    widget = _open_widget(cfg)
    _print_state(widget)
    return 0


def _run_select_state(cfg: AppConfig, name: str) -> int:
    widget = _open_widget(cfg)
    if not widget.click_state(name):
        LOGGER.error("State '%s' cannot be selected at level '%s'.", name, widget.state.level)
        return 1
    widget.settle()
    LOGGER.info("Selected state %s (camera %s)", widget.state.selected_state, widget.camera.transform.to_svg())
    _print_state(widget)
    return 0


def _run_select_district(cfg: AppConfig, name: str) -> int:
    widget = _open_widget(cfg)
    if not widget.click_district(name):
        LOGGER.error("District '%s' cannot be selected at level '%s'.", name, widget.state.level)
        return 1
    widget.settle()
    LOGGER.info(
        "Selected district %s (camera %s)",
        widget.state.selected_district,
        widget.camera.transform.to_svg(),
    )
    _print_state(widget)
    return 0


def _run_back(cfg: AppConfig) -> int:
    widget = _open_widget(cfg)
    widget.go_back()
    widget.settle()
    LOGGER.info("Now at level %s", widget.state.level)
    _print_state(widget)
    return 0


def _run_reset(cfg: AppConfig) -> int:
    widget = _open_widget(cfg)
    widget.reset()
    widget.settle()
    LOGGER.info("View reset; session cleared.")
    _print_state(widget)
    return 0


def _run_explore(cfg: AppConfig) -> int:
    widget = _open_widget(cfg)
    print(widget.explore())
    return 0


def _run_render(cfg: AppConfig, output: str | None) -> int:
    widget = _open_widget(cfg)
    if output:
        output_path = Path(output)
    else:
        output_path = cfg.paths.render_dir / f"map_{widget.state.level}.png"
    try:
        written = render_snapshot(widget, output_path)
    except Exception as exc:
        LOGGER.error("Snapshot rendering failed: %s", exc)
        return 1
    LOGGER.info("Snapshot written to %s", written)
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = args.command
    if command == "validate":
        return _run_validate(cfg)
    try:
        if command == "show":
            return _run_show(cfg)
        if command == "select-state":
            return _run_select_state(cfg, str(args.name))
        if command == "select-district":
            return _run_select_district(cfg, str(args.name))
        if command == "back":
            return _run_back(cfg)
        if command == "reset":
            return _run_reset(cfg)
        if command == "explore":
            return _run_explore(cfg)
        if command == "render":
            return _run_render(cfg, args.output)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error(
            "Failed loading boundary data: %s. Check paths in %s; run `regionmap validate`.",
            exc,
            cfg.source_path,
        )
        return 1
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
