# src/palletizer/pallets.py
from __future__ import annotations

from palletizer.models import PalletConstraints

# Usable load envelope (mm / grams). 40x72x48 in and 40x48x48 in, 1500 lbs.
PALLET_PRESETS_MM: dict[str, dict[str, float]] = {
    "40x72": {"max_length": 1016.0, "max_width": 1828.8, "max_height": 1219.2, "max_weight": 680388.0},
    "40x48": {"max_length": 1016.0, "max_width": 1219.2, "max_height": 1219.2, "max_weight": 680388.0},
}


def get_pallet_constraints(preset: str) -> PalletConstraints:
    key = preset.strip().lower()
    if key not in PALLET_PRESETS_MM:
        raise ValueError(f"Unknown pallet preset '{preset}'. Valid: {sorted(PALLET_PRESETS_MM.keys())}")
    return PalletConstraints(**PALLET_PRESETS_MM[key])


def standard_pallet() -> PalletConstraints:
    """40x72x48 inch pallet, 1500 lbs."""
    return get_pallet_constraints("40x72")


def standard_pallet_4048() -> PalletConstraints:
    """40x48x48 inch pallet, 1500 lbs."""
    return get_pallet_constraints("40x48")
