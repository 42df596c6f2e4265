"""
Test: Ring Layout
=================

Capacity table, coordinate validity, occupancy and slot claiming.
"""

import pytest

from services.layout import (
    LayerCapacity,
    Placement,
    build_occupancy,
    claim_next_slot,
    is_valid_coordinate,
)


class TestLayerCapacity:
    """Capacity formula, overrides and maximum layer."""

    def test_doubling_from_base_four(self):
        capacity = LayerCapacity(base=4)
        assert [capacity.capacity(i) for i in range(5)] == [4, 8, 16, 32, 64]

    def test_doubling_from_base_three(self):
        capacity = LayerCapacity(base=3)
        assert [capacity.capacity(i) for i in range(4)] == [3, 6, 12, 24]

    def test_override_replaces_formula_for_one_layer(self):
        capacity = LayerCapacity(base=4, overrides={3: 24})
        assert capacity.capacity(2) == 16
        assert capacity.capacity(3) == 24
        assert capacity.capacity(4) == 64

    def test_max_layer_makes_outer_layers_empty(self):
        capacity = LayerCapacity(base=3, overrides={3: 24}, max_layer=3)
        assert capacity.capacity(3) == 24
        assert capacity.capacity(4) == 0

    def test_negative_layer_has_no_slots(self):
        assert LayerCapacity(base=4).capacity(-1) == 0

    def test_overrides_are_detached_from_caller(self):
        overrides = {1: 5}
        capacity = LayerCapacity(base=4, overrides=overrides)
        overrides[1] = 99
        assert capacity.capacity(1) == 5

    @pytest.mark.parametrize("kwargs", [
        {"base": 0},
        {"base": 4, "max_layer": -1},
        {"base": 4, "overrides": {-1: 4}},
        {"base": 4, "overrides": {2: -3}},
    ])
    def test_invalid_tables_rejected(self, kwargs):
        with pytest.raises(ValueError):
            LayerCapacity(**kwargs)


class TestCoordinateValidity:
    """Stored coordinates checked against the capacity table."""

    def test_in_range_is_valid(self, capacity):
        assert is_valid_coordinate(0, 3, capacity)
        assert is_valid_coordinate(1, 7, capacity)

    def test_slot_at_capacity_is_invalid(self, capacity):
        assert not is_valid_coordinate(0, 4, capacity)
        assert not is_valid_coordinate(1, 8, capacity)

    def test_negative_indices_are_invalid(self, capacity):
        assert not is_valid_coordinate(-1, 0, capacity)
        assert not is_valid_coordinate(0, -1, capacity)

    def test_half_assigned_is_invalid(self, capacity):
        assert not is_valid_coordinate(0, None, capacity)
        assert not is_valid_coordinate(None, 0, capacity)
        assert not is_valid_coordinate(None, None, capacity)

    def test_bool_is_not_an_index(self, capacity):
        assert not is_valid_coordinate(True, 0, capacity)

    def test_layer_beyond_max_is_invalid(self):
        capacity = LayerCapacity(base=4, max_layer=1)
        assert is_valid_coordinate(1, 0, capacity)
        assert not is_valid_coordinate(2, 0, capacity)

    def test_layer_overridden_to_zero_is_invalid(self):
        capacity = LayerCapacity(base=4, overrides={1: 0})
        assert not is_valid_coordinate(1, 0, capacity)


class TestOccupancy:

    def test_groups_slots_by_layer(self):
        occupancy = build_occupancy([(0, 1), (0, 3), (2, 5), None])
        assert occupancy == {0: {1, 3}, 2: {5}}

    def test_empty_input(self):
        assert build_occupancy([]) == {}


class TestClaimNextSlot:
    """First free (layer, slot) in scan order."""

    def test_first_claims_fill_layer_zero_then_layer_one(self, capacity):
        occupancy = {}
        claims = [claim_next_slot(occupancy, capacity) for _ in range(5)]
        assert claims == [(0, 0), (0, 1), (0, 2), (0, 3), (1, 0)]

    def test_claim_marks_occupancy(self, capacity):
        occupancy = {}
        coordinate = claim_next_slot(occupancy, capacity)
        layer_index, slot_index = coordinate
        assert slot_index in occupancy[layer_index]

    def test_never_returns_an_occupied_coordinate(self, capacity):
        occupancy = build_occupancy([(0, 0), (0, 2), (1, 0), (1, 1)])
        taken = {(layer, slot) for layer, slots in occupancy.items() for slot in slots}
        for _ in range(30):
            coordinate = claim_next_slot(occupancy, capacity)
            assert coordinate not in taken
            taken.add(coordinate)

    def test_fills_gaps_before_outer_layers(self, capacity):
        occupancy = build_occupancy([(0, 0), (0, 1), (0, 3), (1, 0)])
        assert claim_next_slot(occupancy, capacity) == (0, 2)
        assert claim_next_slot(occupancy, capacity) == (1, 1)

    def test_bounded_table_reports_full(self):
        capacity = LayerCapacity(base=2, max_layer=1)
        occupancy = {}
        claims = [claim_next_slot(occupancy, capacity) for _ in range(6)]
        assert claims == [(0, 0), (0, 1), (1, 0), (1, 1), (1, 2), (1, 3)]
        assert claim_next_slot(occupancy, capacity) is None

    def test_unbounded_table_always_succeeds(self):
        capacity = LayerCapacity(base=1)
        occupancy = {0: {0}, 1: {0, 1}, 2: {0, 1, 2, 3}}
        assert claim_next_slot(occupancy, capacity) == (3, 0)

    def test_skips_layers_overridden_to_zero(self):
        capacity = LayerCapacity(base=2, overrides={1: 0})
        occupancy = {0: {0, 1}}
        assert claim_next_slot(occupancy, capacity) == (2, 0)

    def test_out_of_range_claims_do_not_block(self, capacity):
        occupancy = {0: {0, 1, 2, 3, 9}}
        assert claim_next_slot(occupancy, capacity) == (1, 0)


class TestPlacement:
    """Angle and radius derived from a coordinate."""

    def test_radius_grows_linearly(self):
        placement = Placement(base_radius=90, radius_step=70)
        assert placement.radius(0) == 90
        assert placement.radius(3) == 300

    def test_layer_zero_uses_fixed_angles_when_sizes_match(self, capacity):
        placement = Placement(layer0_angles=(45.0, 135.0, 225.0, 315.0))
        assert placement.angle(0, 2, capacity) == 225.0

    def test_layer_zero_spaces_evenly_when_sizes_differ(self):
        capacity = LayerCapacity(base=3)
        placement = Placement(layer0_angles=(0.0, 90.0, 180.0, 270.0))
        assert placement.angle(0, 1, capacity) == pytest.approx(120.0)

    def test_outer_layers_are_staggered_half_a_step(self, capacity):
        placement = Placement(stagger_layers=True)
        # layer 1 has 8 slots: 45 degree spacing, 22.5 offset
        assert placement.angle(1, 0, capacity) == pytest.approx(22.5)
        assert placement.angle(1, 2, capacity) == pytest.approx(112.5)

    def test_stagger_can_be_disabled(self, capacity):
        placement = Placement(stagger_layers=False)
        assert placement.angle(1, 2, capacity) == pytest.approx(90.0)

    def test_unassigned_has_no_geometry(self, capacity):
        assert Placement().place(None, None, capacity) == (None, None)

    def test_layer_without_slots_rejected(self):
        capacity = LayerCapacity(base=4, max_layer=0)
        with pytest.raises(ValueError):
            Placement().angle(1, 0, capacity)
