import pytest
import sys
import os
from dataclasses import FrozenInstanceError

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from box_costing.config.settings import Settings
from box_costing.engine.models import (
    LINER,
    AddOnCosts,
    BoxInput,
    CalculationResult,
    LayerSpec,
    ManufacturingOptions,
    SheetInput,
)
from box_costing.engine.quote_assembler import (
    assemble_quote_item,
    manufacturing_costs,
    negotiate,
    total_cost_per_box,
    update_add_on_costs,
)


@pytest.fixture(scope="module")
def settings():
    return Settings.load()


@pytest.fixture
def calc_result():
    return CalculationResult(
        sheet_length=1450,
        sheet_width=530,
        sheet_weight=0.5,
        layer_weights=[0.5],
        bs=3.6,
        paper_cost=20.0,
        board_thickness=5.0,
        box_perimeter=1400,
        ect=5.0,
        bct=900.0,
        layer_specs=[LayerSpec(0, LINER, 180, 20, rate=40)],
    )


@pytest.fixture
def item(calc_result, settings):
    # (20 + 3) x 1.15 + 0.5 x 15 = 33.95
    return assemble_quote_item(
        calc_result,
        AddOnCosts(printing=2.0, die=1.0),
        15,
        1000,
        conversion_cost_per_kg=15,
        source=BoxInput(400, 300, 200, ply='5'),
        settings=settings,
    )


def test_total_cost_per_box():
    cost = total_cost_per_box(20.0, AddOnCosts(printing=2.0, die=1.0), 15, 0.5, 15)
    assert cost == pytest.approx(23 * 1.15 + 7.5)


def test_assembled_totals(item):
    assert item.total_cost_per_box == pytest.approx(33.95)
    assert item.total_value == pytest.approx(33950)
    assert item.original_price is None
    assert item.price_per_box == pytest.approx(33.95)


def test_box_details_snapshot(item):
    assert item.item_type == "rsc"
    assert item.name == "5-Ply Box"
    assert item.glue_flap == 50
    assert item.deckle_allowance == 30
    assert item.ply_thickness_used == 5.0
    assert item.thickness_source == "calculated"
    assert (item.length, item.width, item.height) == (400, 300, 200)


def test_sheet_details_snapshot(calc_result, settings):
    sheet_item = assemble_quote_item(
        calc_result, AddOnCosts(), None, 10,
        source=SheetInput(1000, 800, ply='3', board_thickness_override=3.2, name="Pad"),
        settings=settings,
    )
    assert sheet_item.item_type == "sheet"
    assert sheet_item.name == "Pad"
    assert sheet_item.sheet_allowance == settings.sheet_allowance_default
    assert sheet_item.thickness_source == "manual"
    assert sheet_item.markup_percent == settings.markup_percent
    assert sheet_item.conversion_cost_per_kg == settings.conversion_cost_per_kg


def test_inch_input_stored_in_mm(calc_result, settings):
    item = assemble_quote_item(
        calc_result, AddOnCosts(), 15, 1,
        source=BoxInput(10, 5, 4, ply='3', unit='inches'),
        settings=settings,
    )
    assert item.input_unit == 'inches'
    assert item.length == pytest.approx(254)
    assert item.sheet_length_inches == pytest.approx(1450 / 25.4)


def test_quote_item_is_frozen(item):
    with pytest.raises(FrozenInstanceError):
        item.paper_cost = 0
    assert isinstance(item.layer_specs, tuple)


def test_percentage_negotiation_does_not_compound(item):
    once = negotiate(item, 'percentage', 10)
    twice = negotiate(once, 'percentage', 10)
    assert once.negotiated_price == pytest.approx(33.95 * 0.9)
    assert twice.negotiated_price == pytest.approx(once.negotiated_price)
    assert twice.total_value == pytest.approx(33.95 * 0.9 * 1000)
    assert twice.price_per_box == pytest.approx(33.95 * 0.9)


def test_fixed_negotiation(item):
    deal = negotiate(item, 'fixed', 30)
    assert deal.negotiated_price == 30
    assert deal.total_value == pytest.approx(30000)
    assert deal.original_price == pytest.approx(33.95)
    assert item.negotiated_price is None


def test_none_reverts_negotiation(item):
    reverted = negotiate(negotiate(item, 'fixed', 30), 'none')
    assert reverted.negotiation_mode == 'none'
    assert reverted.negotiated_price is None
    assert reverted.negotiation_value is None
    assert reverted.original_price is None
    assert reverted.total_value == pytest.approx(33950)


def test_bad_negotiation_input(item):
    with pytest.raises(ValueError):
        negotiate(item, 'haggle', 5)
    with pytest.raises(ValueError):
        negotiate(item, 'percentage')


def test_add_on_edit_keeps_paper_cost(item):
    updated = update_add_on_costs(item, AddOnCosts(printing=4.0))
    assert updated.paper_cost == item.paper_cost
    assert updated.layer_specs == item.layer_specs
    assert updated.total_cost_per_box == pytest.approx(24 * 1.15 + 7.5)
    assert updated.total_value == pytest.approx((24 * 1.15 + 7.5) * 1000)
    assert updated.die_cost == 0


def test_add_on_edit_reapplies_negotiation(item):
    discounted = negotiate(item, 'percentage', 10)
    updated = update_add_on_costs(discounted, AddOnCosts(printing=4.0), quantity=500)
    new_cost = 24 * 1.15 + 7.5
    assert updated.original_price == pytest.approx(new_cost)
    assert updated.negotiated_price == pytest.approx(new_cost * 0.9)
    assert updated.total_value == pytest.approx(new_cost * 0.9 * 500)


def test_printing_spreads_plate_cost():
    options = ManufacturingOptions(printing_enabled=True, cost_per_print=1.5, plate_cost=500)
    assert manufacturing_costs(options, 1000).printing == pytest.approx(2.0)


def test_printing_below_moq_charges_shortfall():
    options = ManufacturingOptions(printing_enabled=True, cost_per_print=1.5, plate_cost=500, print_moq=2000)
    assert manufacturing_costs(options, 1000).printing == pytest.approx(3.5)


def test_lamination_from_sheet_size():
    options = ManufacturingOptions(lamination_enabled=True, lamination_rate=0.5)
    # 508 x 254 mm is 20 x 10 in
    assert manufacturing_costs(options, 100, 508, 254).lamination == pytest.approx(1.0)


def test_lamination_explicit_size():
    options = ManufacturingOptions(
        lamination_enabled=True, lamination_rate=0.5, lamination_length_in=30, lamination_width_in=20,
    )
    assert manufacturing_costs(options, 100, 508, 254).lamination == pytest.approx(3.0)


def test_job_charges_and_toggles():
    options = ManufacturingOptions(
        die_enabled=True, die_development_charge=2000,
        punching_enabled=True, punching_cost=0.4,
        varnish_enabled=False, varnish_cost=0.3,
    )
    costs = manufacturing_costs(options, 1000)
    assert costs.die == pytest.approx(2.0)
    assert costs.punching == pytest.approx(0.4)
    assert costs.varnish == 0
    assert costs.total == pytest.approx(2.4)


def test_zero_quantity_treated_as_one():
    options = ManufacturingOptions(die_enabled=True, die_development_charge=2000)
    assert manufacturing_costs(options, 0).die == pytest.approx(2000)


def test_to_dict_export(item):
    data = item.to_dict()
    assert data['totalCostPerBox'] == pytest.approx(33.95)
    assert data['layerSpecs'][0]['gsm'] == 180
    assert data['negotiationMode'] == 'none'
