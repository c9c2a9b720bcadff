import pytest

from palletizer.pallets import get_pallet_constraints, standard_pallet, standard_pallet_4048
from palletizer.units import grams_to_pounds, inches_to_mm, mm_to_inches, pounds_to_grams


def test_unit_conversions() -> None:
    assert inches_to_mm(1) == 25.4
    assert inches_to_mm(40) == pytest.approx(1016.0)
    assert pounds_to_grams(1500) == pytest.approx(680388.0)
    assert mm_to_inches(inches_to_mm(24)) == pytest.approx(24)
    assert grams_to_pounds(pounds_to_grams(40)) == pytest.approx(40)


def test_standard_pallet_matches_imperial_envelope() -> None:
    pallet = standard_pallet()

    assert pallet.max_length == pytest.approx(inches_to_mm(40))
    assert pallet.max_width == pytest.approx(inches_to_mm(72))
    assert pallet.max_height == pytest.approx(inches_to_mm(48))
    assert pallet.max_weight == pytest.approx(pounds_to_grams(1500))


def test_4048_pallet() -> None:
    pallet = standard_pallet_4048()

    assert pallet.max_length == 1016.0
    assert pallet.max_width == 1219.2
    assert pallet.max_height == 1219.2


def test_preset_lookup_is_case_and_space_insensitive() -> None:
    assert get_pallet_constraints(" 40X48 ") == standard_pallet_4048()


def test_unknown_preset() -> None:
    with pytest.raises(ValueError, match="Unknown pallet preset"):
        get_pallet_constraints("48x48")
