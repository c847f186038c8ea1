"""
PackingChecklist persistence in the local database.
"""

import pytest

from challan_kernel.services.packing_service import (
    PackedState,
    PackingChecklist,
    PackingStats,
    packing_key,
)


@pytest.fixture
def checklist(session_factory, deterministic_clock):
    return PackingChecklist(session_factory, deterministic_clock)


class TestPackingChecklist:

    def test_empty_procedure(self, checklist):
        assert checklist.load("Tibia Nailing") == {}
        assert not checklist.is_packed("Tibia Nailing", "item:Nail")

    def test_mark_and_load(self, checklist, deterministic_clock):
        key = packing_key("instrument", "Nail Inserter")
        state = checklist.set_packed("Tibia Nailing", key, True)
        assert state == PackedState(True, deterministic_clock.now())
        assert checklist.load("Tibia Nailing") == {key: state}
        assert checklist.is_packed("Tibia Nailing", key)

    def test_remark_overwrites(self, checklist, deterministic_clock):
        checklist.set_packed("Tibia Nailing", "item:Nail", True)
        deterministic_clock.advance(60)
        checklist.set_packed("Tibia Nailing", "item:Nail", False)
        state = checklist.load("Tibia Nailing")["item:Nail"]
        assert state.packed is False
        assert state.packed_at == deterministic_clock.now()

    def test_procedures_are_independent(self, checklist):
        checklist.set_packed("Tibia Nailing", "item:Nail", True)
        assert checklist.load("Hip Replacement") == {}

    def test_clear_procedure(self, checklist, captured_logs):
        checklist.set_packed("Tibia Nailing", "item:Nail", True)
        checklist.set_packed("Tibia Nailing", "fixed:Guide Wire", True)
        checklist.set_packed("Hip Replacement", "item:Stem", True)
        assert checklist.clear_procedure("Tibia Nailing") == 2
        assert checklist.load("Tibia Nailing") == {}
        assert len(checklist.load("Hip Replacement")) == 1
        assert any(r["message"] == "packing_cleared" for r in captured_logs())

    def test_stats_over_shown_keys(self, checklist):
        checklist.set_packed("Tibia Nailing", "item:Nail", True)
        checklist.set_packed("Tibia Nailing", "item:Bolt", False)
        checklist.set_packed("Tibia Nailing", "item:Removed", True)
        stats = checklist.stats("Tibia Nailing", ["item:Nail", "item:Bolt", "fixed:Wire"])
        assert stats == PackingStats(total=3, packed=1)
        assert stats.percent == 33


class TestPackingStats:

    @pytest.mark.parametrize("total, packed, percent", [
        (0, 0, 0), (3, 2, 67), (8, 1, 13), (2, 1, 50), (4, 4, 100),
    ])
    def test_percent_rounds_half_up(self, total, packed, percent):
        assert PackingStats(total, packed).percent == percent
