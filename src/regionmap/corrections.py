"""Data correction loading."""

from __future__ import annotations

from pathlib import Path

import yaml

from .models import DataCorrections

# The boundary source spells one parent region wrongly on every district row.
BUILTIN_CORRECTIONS = DataCorrections(
    parent_aliases={"Arunanchal Pradesh": "Arunachal Pradesh"},
    district_parents={},
)


def load_corrections(path: Path) -> DataCorrections:
    """Load optional corrections layered over the built-in rules."""
    if not path.exists():
        return BUILTIN_CORRECTIONS
    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return BUILTIN_CORRECTIONS
    if not isinstance(raw, dict):
        raise ValueError(f"Expected mapping in {path}")
    unknown = sorted(str(key) for key in raw if key not in {"parent_aliases", "district_parents"})
    if unknown:
        raise ValueError(f"Unknown correction sections in {path}: {', '.join(unknown)}")
    loaded = DataCorrections.from_mapping(raw)
    return DataCorrections(
        parent_aliases={**BUILTIN_CORRECTIONS.parent_aliases, **loaded.parent_aliases},
        district_parents={**BUILTIN_CORRECTIONS.district_parents, **loaded.district_parents},
    )
