"""Tests für die Planungs-Engine: Zuweisungsprüfung, Auslastung, Routinen, Vorschläge."""

from decimal import Decimal

import pytest

from config.defaults import default_walk_groups
from models.enums import (
    GeographicSector,
    RoutineType,
    TimeBlock,
    TimePreference,
    WalkType,
    WorkDay,
)
from models.planning import Assignment, DogRoutine, WeeklySlotInstance
from rules.errors import RulesContractError, UnknownSlotError
from rules.planning_engine import (
    analyze_weekly_load,
    build_group_id,
    calculate_weekly_revenue,
    check_routine_compliance,
    check_week_compliance,
    detect_assignment_conflicts,
    parse_group_id,
    score_slot,
    suggest_optimal_slots,
    validate_capacity,
    validate_dog_assignment,
)

YEAR, WEEK = 2025, 10


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _week_slots(**overrides) -> list[WeeklySlotInstance]:
    """Alle 15 Slots der Testwoche; overrides: {"LU_B1": {"current_count": 4}}."""
    slots = []
    for group in default_walk_groups():
        update = overrides.get(group.id.replace("-", "_"), {})
        slot = WeeklySlotInstance(year=YEAR, week_number=WEEK, group=group)
        slots.append(slot.model_copy(update=update) if update else slot)
    return slots


def _slot_id(group_id: str, week: int = WEEK) -> str:
    return f"{YEAR}-W{week:02d}-{group_id}"


def _assign(animal_id: str, group_id: str, week: int = WEEK) -> Assignment:
    return Assignment(animal_id=animal_id, year=YEAR, week_number=week, group_id=group_id)


# ─── Gruppen-IDs ──────────────────────────────────────────────────────────────

class TestGroupIds:
    def test_parse_valid(self):
        assert parse_group_id("lu-b1") == (WorkDay.LUNDI, TimeBlock.B1)
        assert parse_group_id("VE-B3") == (WorkDay.VENDREDI, TimeBlock.B3)

    @pytest.mark.parametrize("group_id", ["XX-B1", "LU-B4", "SPECIAL", ""])
    def test_parse_foreign_format(self, group_id):
        assert parse_group_id(group_id) is None

    def test_build_roundtrip(self):
        assert build_group_id(WorkDay.MERCREDI, TimeBlock.B2) == "ME-B2"


# ─── Zuweisungsprüfung ────────────────────────────────────────────────────────

class TestValidateDogAssignment:
    def test_free_slot_is_valid(self):
        result = validate_dog_assignment("A1", _slot_id("LU-B1"), [], _week_slots())
        assert result.is_valid
        assert result.violations == []

    def test_unknown_slot_raises(self):
        with pytest.raises(UnknownSlotError) as exc:
            validate_dog_assignment("A1", _slot_id("XX-B9"), [], _week_slots())
        assert exc.value.slot_ref == _slot_id("XX-B9")
        assert isinstance(exc.value, RulesContractError)

    def test_unknown_slot_of_existing_assignment_raises(self):
        with pytest.raises(UnknownSlotError):
            validate_dog_assignment(
                "A1", _slot_id("LU-B1"), [_assign("A1", "ZZ-B1")], _week_slots()
            )

    def test_blocked_slot(self):
        slots = _week_slots(LU_B1={"is_blocked": True, "block_reason": "Formation"})
        result = validate_dog_assignment("A1", _slot_id("LU-B1"), [], slots)
        assert not result.is_valid
        assert result.codes == ["slot_blocked"]
        assert "Formation" in result.errors[0].description

    def test_full_slot(self):
        slots = _week_slots(LU_B1={"current_count": 4})
        result = validate_dog_assignment("A1", _slot_id("LU-B1"), [], slots)
        assert result.codes == ["slot_full"]

    def test_collects_all_violations(self):
        slots = _week_slots(LU_B1={"is_blocked": True, "current_count": 4})
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [], slots, animal_sector=GeographicSector.S3
        )
        assert result.codes == ["slot_blocked", "slot_full", "sector_mismatch"]
        assert len(result.errors) == 2
        assert len(result.warnings) == 1

    def test_already_assigned(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "LU-B1")], _week_slots()
        )
        assert "already_assigned" in result.codes
        assert "same_day_double_booking" not in result.codes

    def test_already_assigned_even_when_same_day_allowed(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "LU-B1")], _week_slots(),
            allow_same_day=True,
        )
        assert result.codes == ["already_assigned"]

    def test_same_day_double_booking(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "LU-B3")], _week_slots()
        )
        assert result.codes == ["same_day_double_booking"]
        assert not result.is_valid

    def test_same_day_allowed_by_option(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "LU-B3")], _week_slots(),
            allow_same_day=True,
        )
        assert result.is_valid

    def test_other_week_and_other_dog_ignored(self):
        assignments = [_assign("A1", "LU-B3", week=WEEK + 1), _assign("A2", "LU-B3")]
        slots = _week_slots()
        result = validate_dog_assignment("A1", _slot_id("LU-B1"), assignments, slots)
        assert result.is_valid

    def test_routine_exceeded_is_warning(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R1)
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "MA-B1")], _week_slots(), routine=routine
        )
        assert result.is_valid
        assert result.codes == ["routine_exceeded"]

    def test_routine_within_limit(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R2)
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "MA-B1")], _week_slots(), routine=routine
        )
        assert result.violations == []

    def test_ponctuel_never_exceeds(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.PONCTUEL)
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "MA-B1")], _week_slots(), routine=routine
        )
        assert "routine_exceeded" not in result.codes

    def test_sector_from_routine(self):
        routine = DogRoutine(
            animal_id="A1", routine_type=RoutineType.R3, sector=GeographicSector.S2
        )
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [], _week_slots(), routine=routine
        )
        assert result.codes == ["sector_mismatch"]
        assert result.warnings[0].entity == "A1"

    def test_matching_sector_no_warning(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [], _week_slots(), animal_sector=GeographicSector.S1
        )
        assert result.violations == []

    def test_weekly_limit_is_error(self):
        """Fünf Balades in der Woche: die sechste ist ausgeschlossen."""
        existing = [_assign("A1", f"{day}-B1") for day in ("LU", "MA", "ME", "JE", "VE")]
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B3"), existing, _week_slots(), allow_same_day=True
        )
        assert not result.is_valid
        assert result.codes == ["max_weekly_walks"]
        assert "max: 5" in result.errors[0].description

    def test_weekly_limit_and_adjacent_block(self):
        existing = [_assign("A1", f"{day}-B1") for day in ("LU", "MA", "ME", "JE", "VE")]
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B2"), existing, _week_slots(), allow_same_day=True
        )
        assert not result.is_valid
        assert result.codes == ["max_weekly_walks", "consecutive_walks"]

    def test_below_weekly_limit(self):
        existing = [_assign("A1", f"{day}-B1") for day in ("LU", "MA", "ME", "JE")]
        result = validate_dog_assignment("A1", _slot_id("VE-B1"), existing, _week_slots())
        assert result.violations == []

    def test_weekly_limit_configurable(self):
        existing = [_assign("A1", "LU-B1"), _assign("A1", "MA-B1")]
        result = validate_dog_assignment(
            "A1", _slot_id("ME-B1"), existing, _week_slots(), max_walks_per_week=2
        )
        assert result.codes == ["max_weekly_walks"]

    def test_consecutive_block_is_warning(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B2"), [_assign("A1", "LU-B1")], _week_slots(),
            allow_same_day=True,
        )
        assert result.is_valid
        assert result.codes == ["consecutive_walks"]
        assert "LU-B1" in result.warnings[0].description

    def test_consecutive_block_with_same_day_rule(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B2"), [_assign("A1", "LU-B3")], _week_slots()
        )
        assert result.codes == ["same_day_double_booking", "consecutive_walks"]

    def test_non_adjacent_blocks_not_consecutive(self):
        result = validate_dog_assignment(
            "A1", _slot_id("LU-B1"), [_assign("A1", "LU-B3"), _assign("A1", "MA-B2")],
            _week_slots(), allow_same_day=True,
        )
        assert result.violations == []


# ─── Kapazität ────────────────────────────────────────────────────────────────

class TestValidateCapacity:
    def test_individual_single_dog_ok(self):
        assert validate_capacity(1, WalkType.INDIVIDUELLE).violations == []

    def test_individual_more_than_one(self):
        result = validate_capacity(2, WalkType.INDIVIDUELLE)
        assert not result.is_valid
        assert "individual_walk_capacity" in result.codes

    def test_too_low(self):
        result = validate_capacity(0, WalkType.COLLECTIVE)
        assert result.codes == ["capacity_too_low"]

    def test_too_high(self):
        result = validate_capacity(7, WalkType.COLLECTIVE)
        assert "capacity_too_high" in result.codes
        assert "capacity_above_recommended" in result.codes

    def test_above_recommendation_is_warning_only(self):
        result = validate_capacity(6, WalkType.COLLECTIVE)
        assert result.is_valid
        assert result.codes == ["capacity_above_recommended"]

    def test_custom_maximum(self):
        assert not validate_capacity(5, WalkType.COLLECTIVE, max_capacity=4).is_valid


# ─── Wochenauslastung ─────────────────────────────────────────────────────────

class TestAnalyzeWeeklyLoad:
    @pytest.fixture
    def report(self):
        groups = {g.id: g for g in default_walk_groups()}
        slots = [
            WeeklySlotInstance(year=YEAR, week_number=WEEK, group=groups["LU-B1"], current_count=4),
            WeeklySlotInstance(year=YEAR, week_number=WEEK, group=groups["LU-B2"],
                               capacity=2, current_count=3),
            WeeklySlotInstance(year=YEAR, week_number=WEEK, group=groups["LU-B3"], is_blocked=True),
            WeeklySlotInstance(year=YEAR, week_number=WEEK, group=groups["MA-B1"]),
            WeeklySlotInstance(year=YEAR, week_number=WEEK, group=groups["MA-B2"], current_count=1),
        ]
        return analyze_weekly_load(slots)

    def test_totals(self, report):
        assert report.total_assignments == 8
        assert report.total_capacity == 14       # blockierter Slot zählt nicht
        assert report.utilization_percent == 57

    def test_overbooked_is_strict(self, report):
        assert report.overbooked_slots == [_slot_id("LU-B2")]

    def test_full_slot_is_near_capacity(self, report):
        assert report.near_capacity_slots == [_slot_id("LU-B1")]

    def test_blocked_slot_not_empty(self, report):
        assert report.empty_slots == [_slot_id("MA-B1")]

    def test_distributions(self, report):
        assert report.day_distribution[WorkDay.LUNDI] == 7
        assert report.day_distribution[WorkDay.MARDI] == 1
        assert report.block_distribution[TimeBlock.B2] == 4
        assert report.sector_distribution[GeographicSector.S1] == 4

    def test_slot_utilization(self, report):
        by_id = {s.slot_id: s for s in report.slots}
        assert by_id[_slot_id("LU-B2")].utilization_percent == 150.0
        assert by_id[_slot_id("MA-B2")].utilization_percent == 25.0
        assert by_id[_slot_id("LU-B3")].is_blocked

    def test_summary_text(self, report):
        text = report.summary()
        assert "8 / 14" in text
        assert "Créneaux surchargés" in text
        assert "Lundi" in text

    def test_empty_week(self):
        report = analyze_weekly_load([])
        assert report.total_capacity == 0
        assert report.utilization_percent == 0


# ─── Wochenumsatz ─────────────────────────────────────────────────────────────

class TestWeeklyRevenue:
    def test_collective_price_per_assignment(self):
        assignments = [_assign("A1", "LU-B1"), _assign("A2", "MA-B1")]
        assert calculate_weekly_revenue(assignments, _week_slots()) == Decimal("60")

    def test_custom_price_per_dog(self):
        assignments = [_assign("A1", "LU-B1"), _assign("A2", "MA-B1")]
        revenue = calculate_weekly_revenue(
            assignments, _week_slots(), custom_prices={"A2": Decimal("45")}
        )
        assert revenue == Decimal("75")

    def test_price_follows_slot_walk_type(self):
        slots = _week_slots()
        lu_b2 = next(s for s in slots if s.group_id == "LU-B2")
        individual = lu_b2.model_copy(update={
            "group": lu_b2.group.model_copy(update={"walk_type": WalkType.INDIVIDUELLE}),
        })
        slots = [individual if s is lu_b2 else s for s in slots]
        assert calculate_weekly_revenue([_assign("A1", "LU-B2")], slots) == Decimal("50")

    def test_empty_week(self):
        assert calculate_weekly_revenue([], _week_slots()) == Decimal("0")

    def test_unknown_slot_raises(self):
        with pytest.raises(UnknownSlotError):
            calculate_weekly_revenue([_assign("A1", "LU-B1", week=WEEK + 1)], _week_slots())


# ─── Routinen ─────────────────────────────────────────────────────────────────

class TestRoutineCompliance:
    def test_under(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R2)
        result = check_routine_compliance(routine, [_assign("A1", "LU-B1")])
        assert result.status == "under"
        assert not result.is_compliant
        assert result.expected == 2 and result.actual == 1

    def test_ok(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R2)
        result = check_routine_compliance(
            routine, [_assign("A1", "LU-B1"), _assign("A1", "ME-B1")]
        )
        assert result.status == "ok"
        assert result.is_compliant

    def test_over_is_still_compliant(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R1)
        result = check_routine_compliance(
            routine, [_assign("A1", "LU-B1"), _assign("A1", "ME-B1")]
        )
        assert result.status == "over"
        assert result.is_compliant

    def test_week_compliance_skips_ponctuel_and_inactive(self):
        routines = [
            DogRoutine(animal_id="A1", routine_type=RoutineType.R1),
            DogRoutine(animal_id="A2", routine_type=RoutineType.PONCTUEL),
            DogRoutine(animal_id="A3", routine_type=RoutineType.R3, is_active=False),
        ]
        assignments = [_assign("A1", "LU-B1"), _assign("A1", "MA-B1", week=WEEK + 1)]
        results = check_week_compliance(routines, assignments, YEAR, WEEK)
        assert [r.animal_id for r in results] == ["A1"]
        assert results[0].actual == 1


# ─── Slot-Vorschläge ──────────────────────────────────────────────────────────

class TestSuggestOptimalSlots:
    def test_score_components(self):
        slot = _week_slots()[3]   # MA-B1
        assert slot.group_id == "MA-B1"
        assert score_slot(slot, [WorkDay.MARDI], TimePreference.MATIN) == (10, True, True)
        assert score_slot(slot, [WorkDay.LUNDI], TimePreference.MIDI) == (2, False, False)

    def test_half_full_loses_bonus(self):
        slot = _week_slots(MA_B1={"current_count": 2})[3]
        assert score_slot(slot, [], TimePreference.INDIFFERENT)[0] == 8

    def test_ranking(self):
        routine = DogRoutine(
            animal_id="A1", routine_type=RoutineType.R1,
            preferred_days=[WorkDay.MARDI], time_preference=TimePreference.MATIN,
        )
        suggestions = suggest_optimal_slots("A1", routine, _week_slots())
        assert [s.group_id for s in suggestions] == ["MA-B1", "MA-B2", "MA-B3", "LU-B1", "ME-B1"]
        assert suggestions[0].score == 10
        assert suggestions[0].is_preferred_day and suggestions[0].is_preferred_block

    def test_lower_count_wins_on_tie(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R1)
        slots = _week_slots(LU_B1={"current_count": 1}, LU_B2={"current_count": 1})
        suggestions = suggest_optimal_slots("A1", routine, slots, max_suggestions=15)
        # LU-B1 und LU-B2 sind weniger als halb voll, aber belegt → hinter den leeren Slots
        assert [s.group_id for s in suggestions[-2:]] == ["LU-B1", "LU-B2"]

    def test_excludes_blocked_and_full(self):
        routine = DogRoutine(
            animal_id="A1", routine_type=RoutineType.R1, preferred_days=[WorkDay.MARDI],
        )
        slots = _week_slots(MA_B1={"is_blocked": True}, MA_B2={"current_count": 4})
        ids = [s.group_id for s in suggest_optimal_slots("A1", routine, slots, max_suggestions=15)]
        assert "MA-B1" not in ids and "MA-B2" not in ids
        assert ids[0] == "MA-B3"
        assert len(ids) == 13

    def test_max_suggestions(self):
        routine = DogRoutine(animal_id="A1", routine_type=RoutineType.R1)
        assert len(suggest_optimal_slots("A1", routine, _week_slots(), max_suggestions=3)) == 3


# ─── Konflikte ────────────────────────────────────────────────────────────────

class TestDetectConflicts:
    def test_double_booking(self):
        conflicts = detect_assignment_conflicts([_assign("A1", "LU-B1"), _assign("A1", "LU-B1")])
        assert len(conflicts) == 1
        assert conflicts[0].conflict_type == "double_booking"
        assert conflicts[0].affected_groups == ["LU-B1"]

    def test_consecutive_blocks(self):
        conflicts = detect_assignment_conflicts(
            [_assign("A1", "LU-B1"), _assign("A1", "LU-B2")], _week_slots()
        )
        assert [c.conflict_type for c in conflicts] == ["consecutive_blocks"]
        assert conflicts[0].affected_groups == ["LU-B1", "LU-B2"]

    def test_non_adjacent_blocks_ok(self):
        assert detect_assignment_conflicts([_assign("A1", "LU-B1"), _assign("A1", "LU-B3")]) == []

    def test_different_weeks_ok(self):
        assignments = [_assign("A1", "LU-B1"), _assign("A1", "LU-B2", week=WEEK + 1)]
        assert detect_assignment_conflicts(assignments) == []

    def test_foreign_group_ids_only_double_booking(self):
        assignments = [_assign("A1", "SPECIAL"), _assign("A1", "SPECIAL")]
        conflicts = detect_assignment_conflicts(assignments)
        assert [c.conflict_type for c in conflicts] == ["double_booking"]
