"""Validation layer for config and boundary inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from collections import Counter
from typing import Iterable, Sequence

from .config import AppConfig
from .corrections import load_corrections
from .geodata import GeoRepository, names_match
from .models import DataCorrections, Feature
from .projection import MapProjection


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def build_repository(cfg: AppConfig, corrections: DataCorrections | None = None) -> GeoRepository:
    return GeoRepository(
        cfg.paths.states_geojson,
        cfg.paths.districts_geojson,
        state_name_fields=cfg.regions.state_name_fields,
        district_name_fields=cfg.regions.district_name_fields,
        parent_fields=cfg.regions.parent_fields,
        corrections=corrections if corrections is not None else load_corrections(cfg.paths.corrections),
    )


class Validator:
    """Checks that the boundary data can drive the map."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        for path in self.cfg.paths.required_input_files:
            if not path.exists():
                report.add_error(f"Missing required input file: {path}")
        if not report.ok:
            return report

        try:
            corrections = load_corrections(self.cfg.paths.corrections)
        except Exception as exc:
            report.add_error(f"Failed parsing corrections '{self.cfg.paths.corrections}': {exc}")
            return report
        report.add_info(
            f"Loaded {len(corrections.parent_aliases)} parent aliases and "
            f"{len(corrections.district_parents)} district reassignments"
        )

        repo = build_repository(self.cfg, corrections)
        try:
            states = repo.states
            districts = repo.districts
        except Exception as exc:
            report.add_error(f"Failed loading boundary data: {exc}")
            return report
        report.add_info(f"Loaded {len(states)} states and {len(districts)} districts")
        if not states:
            report.add_error(f"No state features found in {self.cfg.paths.states_geojson}")
            return report

        self._validate_non_interactive(report, states)
        self._validate_parents(report, states, districts)
        self._validate_bounds(report, (*states, *districts))
        return report

    def _validate_non_interactive(self, report: ValidationReport, states: Sequence[Feature]) -> None:
        for name in self.cfg.regions.non_interactive:
            if not any(names_match(f.name, name) for f in states):
                report.add_warning(f"Non-interactive region '{name}' is not in the state data")

    def _validate_parents(
        self,
        report: ValidationReport,
        states: Sequence[Feature],
        districts: Sequence[Feature],
    ) -> None:
        orphans = sorted(
            f.name
            for f in districts
            if f.parent is None or not any(names_match(s.name, f.parent) for s in states)
        )
        if orphans:
            report.add_warning(
                f"{len(orphans)} districts have no matching parent state: "
                + _format_name_list(orphans)
            )
        counts = Counter(f.name for f in districts)
        duplicates = sorted(name for name, count in counts.items() if count > 1)
        if duplicates:
            report.add_warning("Duplicate district names: " + _format_name_list(duplicates))

    def _validate_bounds(self, report: ValidationReport, features: Sequence[Feature]) -> None:
        projection = MapProjection.from_config(self.cfg)
        unusable = sorted(f.name for f in features if projection.screen_bounds(f.geometry) is None)
        if unusable:
            report.add_warning(
                "Features without usable canvas bounds (camera will not frame them): "
                + _format_name_list(unusable)
            )


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    for info in report.infos:
        yield f"[INFO] {info}"
    for warning in report.warnings:
        yield f"[WARN] {warning}"
    for error in report.errors:
        yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."


def _format_name_list(values: list[str], limit: int = 12) -> str:
    if len(values) <= limit:
        return ", ".join(values)
    shown = ", ".join(values[:limit])
    return f"{shown}, ... (+{len(values) - limit} more)"
