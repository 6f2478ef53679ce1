from __future__ import annotations

import json
from pathlib import Path

from shapely.geometry import box, mapping

from regionmap.config import load_config
from regionmap.validate import Validator, format_report_lines


def test_fixture_data_validates(app_config) -> None:
    report = Validator(app_config).run()
    assert report.ok
    assert report.warnings == []
    assert any("4 states and 4 districts" in info for info in report.infos)
    lines = list(format_report_lines(report))
    assert lines[-1] == "[OK] Validation completed with no errors."


def test_missing_inputs_are_errors(app_config) -> None:
    app_config.paths.districts_geojson.unlink()
    report = Validator(app_config).run()
    assert not report.ok
    assert any("districts.geojson" in error for error in report.errors)
    assert any(line.startswith("[ERROR]") for line in format_report_lines(report))


def test_orphan_districts_are_reported(config_path: Path) -> None:
    cfg = load_config(config_path)
    raw = json.loads(cfg.paths.districts_geojson.read_text(encoding="utf-8"))
    raw["features"].append(
        {
            "type": "Feature",
            "properties": {"DISTRICT": "Nowhere", "ST_NM": "Atlantis"},
            "geometry": mapping(box(92.0, 24.0, 92.5, 24.5)),
        }
    )
    cfg.paths.districts_geojson.write_text(json.dumps(raw), encoding="utf-8")

    report = Validator(cfg).run()
    assert report.ok
    assert any("no matching parent state: Nowhere" in warning for warning in report.warnings)


def test_bad_corrections_file_is_an_error(app_config) -> None:
    app_config.paths.corrections.parent.mkdir(parents=True, exist_ok=True)
    app_config.paths.corrections.write_text("renames: {}\n", encoding="utf-8")
    report = Validator(app_config).run()
    assert not report.ok
    assert any("corrections" in error for error in report.errors)
