import logging
import math
import pytest
import sys
import os

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from box_costing.config.settings import Settings
from box_costing.engine.models import FLUTE, LINER, LayerSpec
from box_costing.engine.strength import (
    board_thickness,
    box_perimeter,
    burst_strength,
    edge_crush,
    mckee_bct,
    predict_strength,
)


@pytest.fixture(scope="module")
def settings():
    return Settings.load()


@pytest.fixture
def three_ply():
    return [
        LayerSpec(0, LINER, 180, 20, rct_value=2.0),
        LayerSpec(1, FLUTE, 120, 18, fluting_factor=1.5, rct_value=1.0),
        LayerSpec(2, LINER, 150, 18, rct_value=2.0),
    ]


def test_burst_strength_halves_flute_contribution(three_ply):
    # 180x20/1000 + 120x18/2000 + 150x18/1000
    assert burst_strength(three_ply) == pytest.approx(3.6 + 1.08 + 2.7)


def test_burst_strength_empty_is_zero():
    assert burst_strength([]) == 0


def test_edge_crush_applies_fluting_factor(three_ply, settings):
    assert edge_crush(three_ply, settings) == pytest.approx(2.0 + 1.0 * 1.5 + 2.0)


def test_edge_crush_default_factor_for_flute_without_one(settings):
    flute = LayerSpec(1, FLUTE, 120, 18, fluting_factor=0, rct_value=2.0)
    assert edge_crush([flute], settings) == pytest.approx(2.0 * settings.default_fluting_factor)


def test_edge_crush_ignores_missing_rct(settings):
    assert edge_crush([LayerSpec(0, LINER, 180, 20)], settings) == 0


def test_flute_sum_thickness(settings):
    # B 2.5 + C 3.6
    assert board_thickness('5', flute_combination='BC', settings=settings) == pytest.approx(6.1)
    assert board_thickness('5', flute_combination='bc', settings=settings) == pytest.approx(6.1)


def test_manual_thickness_wins(settings):
    assert board_thickness('5', flute_combination='BC', manual_thickness=4.2, settings=settings) == 4.2


def test_mono_board_has_no_flute_thickness(settings):
    assert board_thickness('1', settings=settings) == 0


def test_thickness_from_ply_map(settings):
    assert board_thickness('5', settings=settings) == pytest.approx(5.0)
    assert board_thickness('9', settings=settings) == pytest.approx(11.0)


def test_unknown_flute_letter_uses_default_height(settings, caplog):
    with caplog.at_level(logging.WARNING):
        thickness = board_thickness('5', flute_combination='BZ', settings=settings)
    assert thickness == pytest.approx(2.5 + settings.default_flute_height)
    assert "Unknown flute type" in caplog.text


def test_box_perimeter():
    assert box_perimeter(400, 300) == 1400
    assert box_perimeter(None, 300) == 600


def test_mckee_reference_value(settings):
    """ECT 5 kN/m, 5mm board, 2000mm perimeter: 5.87 x 5 x sqrt(0.5 x 2000)."""
    expected = 5.87 * 5 * math.sqrt(0.5 * 2000)
    assert mckee_bct(5, 5, 2000, settings) == pytest.approx(expected)
    assert expected == pytest.approx(928.13, abs=0.01)


@pytest.mark.parametrize("ect,thickness,perimeter", [
    (0, 5, 2000),
    (5, 0, 2000),
    (5, 5, 0),
    (-1, 5, 2000),
    (None, 5, 2000),
])
def test_mckee_zero_on_invalid_input(settings, ect, thickness, perimeter):
    assert mckee_bct(ect, thickness, perimeter, settings) == 0


def test_predict_strength(three_ply, settings):
    result = predict_strength(three_ply, 3.6, 1400, settings=settings)
    assert result.bs == pytest.approx(burst_strength(three_ply))
    assert result.ect == pytest.approx(5.5)
    assert result.bct == pytest.approx(5.87 * 5.5 * math.sqrt(0.36 * 1400))


def test_capitalized_flute_gets_flute_burst_divisor():
    assert burst_strength([LayerSpec(1, "FLUTE", 120, 18)]) == pytest.approx(120 * 18 / 2000)
