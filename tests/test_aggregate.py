"""
cjbdash - Aggregation Tests
===========================
Tests: group-by ordering, calendar buckets, timeline keys, KPIs, chart helpers
"""

from datetime import date, datetime

import pytest

from cjbdash import aggregate
from cjbdash.aggregate import (
    format_period_label,
    get_aggregations,
    group_by,
    group_by_day_of_week,
    group_by_hour,
    group_by_month,
    group_by_period,
    week_number,
)
from cjbdash.dsa import merge_sort
from cjbdash.models import NOT_SPECIFIED


# ============================================================================
# GROUP BY
# ============================================================================

class TestGroupBy:

    def test_ties_keep_first_encounter_order(self, make):
        rows = [make(1, type="A"), make(2, type="B"), make(3, type="B"),
                make(4, type="A"), make(5, type="C")]
        assert group_by(rows, "type") == [("A", 2), ("B", 2), ("C", 1)]

    def test_sorted_by_count_desc(self, make):
        rows = [make(1, quadrant="B2"), make(2, quadrant="B3"), make(3, quadrant="B3")]
        assert group_by(rows, "quadrant") == [("B3", 2), ("B2", 1)]

    @pytest.mark.parametrize("field", ["type", "quadrant", "officer", "undocumented", "actions"])
    def test_counts_cover_every_incident(self, sample, field):
        assert sum(c for _, c in group_by(sample, field)) == len(sample)

    def test_empty_values_are_not_specified(self, make):
        rows = [make(1, officer=""), make(2, officer=NOT_SPECIFIED), make(3, officer="Ana")]
        assert group_by(rows, "officer") == [(NOT_SPECIFIED, 2), ("Ana", 1)]

    def test_camel_case_field_names(self, make):
        rows = [make(1, person_role="Sospechoso"), make(2, person_role="Testigo"),
                make(3, person_role="Sospechoso")]
        assert group_by(rows, "personRole") == [("Sospechoso", 2), ("Testigo", 1)]

    def test_empty_input(self):
        assert group_by([], "type") == []


class TestCalendarBuckets:

    def test_hours_skip_missing_dates(self, sample):
        hours = group_by_hour(sample)
        assert list(hours) == list(range(24))
        assert sum(hours.values()) == sum(1 for i in sample if i.date is not None)

    def test_day_of_week_starts_on_sunday(self, make):
        rows = [make(1, date=datetime(2025, 7, 6, 8)),   # Sunday
                make(2, date=datetime(2025, 7, 7, 8)),   # Monday
                make(3, date=datetime(2025, 7, 12, 8)),  # Saturday
                make(4, date=None)]
        days = group_by_day_of_week(rows)
        assert days == {0: 1, 1: 1, 2: 0, 3: 0, 4: 0, 5: 0, 6: 1}

    def test_month_is_zero_based(self, make):
        rows = [make(1, date=datetime(2025, 1, 3)), make(2, date=datetime(2025, 7, 3)),
                make(3, date=None)]
        months = group_by_month(rows)
        assert months[0] == 1 and months[6] == 1
        assert sum(months.values()) == 2

    def test_hour_day_matrix(self, scenario):
        matrix = aggregate.hour_day_matrix(scenario)
        assert len(matrix) == 7 and all(len(row) == 24 for row in matrix)
        # 2025-07-01 is a Tuesday, 2025-07-02 a Wednesday
        assert matrix[2][10] == 1 and matrix[2][14] == 1 and matrix[3][9] == 1
        assert sum(map(sum, matrix)) == 3


# ============================================================================
# TIMELINE
# ============================================================================

class TestTimeline:

    @pytest.mark.parametrize("d,expected", [
        (date(2025, 1, 1), 1),
        (date(2025, 1, 4), 1),
        (date(2025, 1, 5), 2),
        (datetime(2025, 1, 4, 23, 59), 1),
        (datetime(2025, 7, 1, 10), 27),
    ])
    def test_week_number(self, d, expected):
        assert week_number(d) == expected

    def test_daily(self, scenario):
        assert group_by_period(scenario, "daily") == [("2025-07-01", 2), ("2025-07-02", 1)]

    def test_weekly(self, scenario):
        assert group_by_period(scenario, "weekly") == [("2025-S27", 3)]

    def test_monthly_and_unknown_period(self, scenario):
        assert group_by_period(scenario, "monthly") == [("2025-07", 3)]
        assert group_by_period(scenario, "yearly") == [("2025-07", 3)]

    def test_keys_sorted_ascending_and_nulls_skipped(self, sample):
        series = group_by_period(sample, "daily")
        keys = [k for k, _ in series]
        assert keys == sorted(keys)
        assert sum(c for _, c in series) == sum(1 for i in sample if i.date is not None)

    def test_labels(self):
        assert format_period_label("2025-07-01", "daily") == "01/07"
        assert format_period_label("2025-S27", "weekly") == "2025 S27"
        assert format_period_label("2025-07", "monthly") == "Jul 2025"


# ============================================================================
# KPIs
# ============================================================================

class TestAggregations:

    def test_scenario(self, scenario):
        agg = get_aggregations(scenario)
        assert agg.as_dict() == {
            "total": 3, "undocumented": 3, "accidents": 1,
            "arrests": 0, "officers": 2, "closures": 0,
        }

    def test_classifiers(self, make):
        accident = make(1, type="Seguridad", narrative="Choque", transit_incident="Accidente leve")
        narrative_accident = make(2, type="Otros", narrative="Accidente menor", transit_incident="")
        arrest = make(3, actions="Detención del conductor", narrative="")
        closure = make(4, actions="", narrative="Se ordenó la clausura")
        plain = make(5, type="Otros", actions="Advertencia", narrative="Nada", transit_incident="")
        assert aggregate.is_accident(accident)
        assert aggregate.is_accident(narrative_accident)
        assert aggregate.is_arrest(arrest)
        assert aggregate.is_closure(closure)
        assert not (aggregate.is_accident(plain) or aggregate.is_arrest(plain)
                    or aggregate.is_closure(plain))

    def test_empty(self):
        assert get_aggregations([]).as_dict() == {
            "total": 0, "undocumented": 0, "accidents": 0,
            "arrests": 0, "officers": 0, "closures": 0,
        }


class TestChartHelpers:

    def test_action_counts(self, make):
        rows = [make(1, actions="Arresto del individuo; multa"),
                make(2, actions="Advertencia verbal, ok"),
                make(3, actions="Arresto, Se tomó nota"),
                make(4, actions="")]
        assert aggregate.action_counts(rows) == [
            ("Arresto/Detención", 2), ("Multa", 1), ("Advertencia", 1),
        ]
        assert aggregate.action_counts(rows, top=1) == [("Arresto/Detención", 2)]

    def test_undocumented_by_quadrant(self, scenario):
        assert aggregate.undocumented_by_quadrant(scenario) == {"B1": 3}

    def test_officer_performance(self, scenario):
        assert aggregate.officer_performance(scenario) == [
            ("Oficial Pérez", {"incidents": 1, "undocumented": 2}),
            ("Oficial Gómez", {"incidents": 1, "undocumented": 0}),
        ]

    def test_filter_options(self, scenario):
        opts = aggregate.filter_options(scenario)
        assert opts["types"] == ["DIGESETT", "Migración"]
        assert opts["quadrants"] == ["B1", "B2"]
        assert opts["officers"] == ["Oficial Gómez", "Oficial Pérez"]
        assert opts["date_min"] == datetime(2025, 7, 1, 10)
        assert opts["date_max"] == datetime(2025, 7, 2, 9)

    def test_filter_options_without_dates(self, make):
        opts = aggregate.filter_options([make(7)])
        assert opts["date_min"] is None and opts["date_max"] is None


class TestMergeSort:

    def test_stable_both_directions(self):
        data = [("a", 1), ("b", 2), ("c", 1), ("d", 2)]
        assert merge_sort(data, key=lambda kv: kv[1]) == [("a", 1), ("c", 1), ("b", 2), ("d", 2)]
        assert merge_sort(data, key=lambda kv: kv[1], reverse=True) == [
            ("b", 2), ("d", 2), ("a", 1), ("c", 1),
        ]
