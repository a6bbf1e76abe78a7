"""Tests for partition planning: validation rules and partition arithmetic."""

from datetime import date, timedelta

import pytest

from partitioning_fakes import daily_partition_names
from datasource_tools.partitioning import planner
from datasource_tools.partitioning.errors import ValidationError
from datasource_tools.partitioning.models import (
    MAXVALUE_PARTITION_NAME,
    ColumnDefinition,
    DateRange,
)


# ---------------------------------------------------------------------------
# validate_date_range
# ---------------------------------------------------------------------------
class TestValidateDateRange:
    def test_valid_range(self):
        r = planner.validate_date_range("2023-09-25", "2023-09-27")
        assert r == DateRange(date(2023, 9, 25), date(2023, 9, 27))

    def test_single_day_range(self):
        r = planner.validate_date_range("2023-09-25", "2023-09-25")
        assert r.day_count == 1

    @pytest.mark.parametrize(
        "start,end",
        [
            ("2023-13-40", "2023-12-31"),
            ("2023-09-25", "2023-9-27"),
            ("2023/09/25", "2023-09-27"),
            ("2023-09-28", "2023-09-27"),
            ("", "2023-09-27"),
        ],
    )
    def test_invalid_ranges(self, start, end):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_date_range(start, end)
        assert len(exc_info.value.messages) == 1
        assert "Invalid input date(s)" in exc_info.value.messages[0]

    def test_last_representable_day_rejected_as_end(self):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_date_range("9999-12-30", "9999-12-31")
        assert exc_info.value.messages == [
            "Invalid endDate [9999-12-31]: the last partition is bounded by the "
            "following day, so the endDate must be before 9999-12-31."
        ]

    def test_day_before_last_representable_day_accepted(self):
        r = planner.validate_date_range("9999-12-29", "9999-12-30")
        ps = planner.build_partition_set(r)
        assert ps.partitions[-1].boundary == date.max


# ---------------------------------------------------------------------------
# validate_column_contract
# ---------------------------------------------------------------------------
ID_OK = ColumnDefinition("id", "bigint unsigned", is_primary_key=True)
ID_UNIQUE = ColumnDefinition("id", "bigint unsigned", is_primary_key=True, is_unique=True)
PART_OK = ColumnDefinition("created_at_indexed", "date", is_primary_key=True)


class TestValidateColumnContract:
    def test_absent_partition_column_only_checks_id(self):
        planner.validate_column_contract("orders", "id", "created_at_indexed", ID_OK, None)

    def test_existing_partition_column_fully_compliant(self):
        planner.validate_column_contract("orders", "id", "created_at_indexed", ID_UNIQUE, PART_OK)

    def test_missing_id_column(self):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_column_contract("orders", "id", "created_at_indexed", None, None)
        assert len(exc_info.value.messages) == 1
        assert "no such column" in exc_info.value.messages[0]

    def test_id_wrong_type_and_not_primary_collects_both(self):
        bad_id = ColumnDefinition("id", "varchar(36)")
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_column_contract("orders", "id", "created_at_indexed", bad_id, None)
        messages = exc_info.value.messages
        assert len(messages) == 2
        assert "`int` or `bigint`" in messages[0]
        assert "primary key" in messages[1]

    def test_existing_partition_column_every_rule_reported(self):
        bad_part = ColumnDefinition("created_at_indexed", "datetime")
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_column_contract("orders", "id", "created_at_indexed", ID_OK, bad_part)
        messages = exc_info.value.messages
        assert len(messages) == 3
        assert "`date`" in messages[0]
        assert "along with `id`" in messages[1]
        assert "`unique`" in messages[2]

    def test_str_joins_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_column_contract(
                "orders", "id", "c", ColumnDefinition("id", "text"), None
            )
        assert str(exc_info.value).count("\n") == 1


# ---------------------------------------------------------------------------
# validate_rotation_window / identifiers
# ---------------------------------------------------------------------------
class TestValidateRotationWindow:
    def test_defaults(self):
        window = planner.validate_rotation_window(2, 7)
        assert (window.future_count, window.historic_count) == (2, 7)

    def test_digit_strings_accepted(self):
        window = planner.validate_rotation_window("3", "14")
        assert (window.future_count, window.historic_count) == (3, 14)

    @pytest.mark.parametrize(
        "future,historic",
        [(1, 7), (2, 1), (0, 0), (-3, 7), ("two", 7), (2, "7.5"), (2.0, 7), (True, 7), (None, 7)],
    )
    def test_invalid(self, future, historic):
        with pytest.raises(ValidationError):
            planner.validate_rotation_window(future, historic)

    @pytest.mark.parametrize("future,historic", [(8193, 7), (2, "8193"), ("99999999", 7)])
    def test_counts_above_partition_limit(self, future, historic):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_rotation_window(future, historic)
        assert "must not exceed 8192" in exc_info.value.messages[0]

    def test_largest_window_accepted(self):
        window = planner.validate_rotation_window(8192, 8192, today=date(2023, 9, 25))
        assert window.future_count == 8192

    @pytest.mark.parametrize(
        "future,historic,today",
        [(2, 7, date(9999, 12, 30)), (2, 7, date(1, 1, 3)), (8192, 2, date(9990, 1, 1))],
    )
    def test_window_outside_date_range(self, future, historic, today):
        with pytest.raises(ValidationError) as exc_info:
            planner.validate_rotation_window(future, historic, today=today)
        assert "outside the supported date range" in exc_info.value.messages[0]


class TestIdentifiers:
    @pytest.mark.parametrize("name", ["orders", "wms_requests", "t$1", "Orders2"])
    def test_valid(self, name):
        assert planner.identifier_violation(name, "table") is None

    @pytest.mark.parametrize("name", ["orders; DROP TABLE x", "a-b", "`orders`", "a b"])
    def test_invalid(self, name):
        assert "Invalid table" in planner.identifier_violation(name, "table")

    def test_empty_is_required(self):
        assert planner.identifier_violation("", "partition_column") == (
            "Argument partition_column is required."
        )

    def test_validate_identifier_raises(self):
        with pytest.raises(ValidationError):
            planner.validate_identifier("x;y", "table")


# ---------------------------------------------------------------------------
# build_partition_set
# ---------------------------------------------------------------------------
class TestBuildPartitionSet:
    @pytest.mark.parametrize("days", [0, 1, 6, 30, 366])
    def test_one_partition_per_day_plus_maxvalue(self, days):
        start = date(2023, 9, 25)
        ps = planner.build_partition_set(DateRange(start, start + timedelta(days=days)))
        assert len(ps.partitions) == days + 1
        assert ps.names[-1] == MAXVALUE_PARTITION_NAME
        for offset, spec in enumerate(ps.partitions):
            assert spec.day == start + timedelta(days=offset)
            assert spec.boundary == spec.day + timedelta(days=1)

    def test_three_day_example(self):
        ps = planner.build_partition_set(DateRange(date(2023, 9, 25), date(2023, 9, 27)))
        assert ps.names == ["p20230925", "p20230926", "p20230927", "pMAXVALUE"]

    def test_crosses_month_and_year(self):
        ps = planner.build_partition_set(DateRange(date(2023, 12, 30), date(2024, 1, 1)))
        assert ps.names == ["p20231230", "p20231231", "p20240101", "pMAXVALUE"]
        assert ps.partitions[-1].boundary_text == "2024-01-02"


# ---------------------------------------------------------------------------
# build_reorganize_step
# ---------------------------------------------------------------------------
class TestBuildReorganizeStep:
    def test_two_days_ahead(self):
        step = planner.build_reorganize_step("orders", date(2023, 9, 25), 2)
        assert step.partition.name == "p20230927"
        assert step.partition.boundary == date(2023, 9, 28)
        assert "REORGANIZE PARTITION pMAXVALUE INTO" in step.statement
        assert "PARTITION p20230927 VALUES LESS THAN (to_days('2023-09-28'))" in step.statement

    def test_seven_days_ahead_crosses_month(self):
        step = planner.build_reorganize_step("wms_requests", date(2023, 9, 25), 7)
        assert step.partition.name == "p20231002"
        assert step.partition.boundary_text == "2023-10-03"


# ---------------------------------------------------------------------------
# select_partitions_for_deletion
# ---------------------------------------------------------------------------
class TestSelectPartitionsForDeletion:
    def test_selects_up_to_and_including_cutoff(self):
        existing = daily_partition_names(date(2023, 9, 18), date(2023, 10, 2)) + ["pMAXVALUE"]
        selected = planner.select_partitions_for_deletion(existing, date(2023, 9, 25))
        assert selected == daily_partition_names(date(2023, 9, 18), date(2023, 9, 25))

    def test_never_selects_maxvalue(self):
        selected = planner.select_partitions_for_deletion(["pMAXVALUE"], date(9999, 12, 31))
        assert selected == []

    def test_nothing_old_enough(self):
        existing = daily_partition_names(date(2023, 9, 20), date(2023, 9, 27)) + ["pMAXVALUE"]
        assert planner.select_partitions_for_deletion(existing, date(2023, 9, 18)) == []

    def test_malformed_names_always_selected(self):
        existing = ["p_legacy", "p20230930", "pMAXVALUE", "p2023093", "p20231340"]
        selected = planner.select_partitions_for_deletion(existing, date(2023, 9, 18))
        assert selected == ["p_legacy", "p2023093", "p20231340"]

    def test_preserves_input_order(self):
        existing = ["p20230917", "p_old", "p20230916", "pMAXVALUE"]
        selected = planner.select_partitions_for_deletion(existing, date(2023, 9, 18))
        assert selected == ["p20230917", "p_old", "p20230916"]

    def test_cutoff_name(self):
        assert planner.deletion_cutoff_name(date(2023, 9, 18)) == "p20230918"


class TestNewestPartitionDay:
    def test_ignores_maxvalue_and_malformed(self):
        names = ["p20230920", "p_legacy", "p20230926", "pMAXVALUE"]
        assert planner.newest_partition_day(names) == date(2023, 9, 26)

    def test_none_when_no_dated_partition(self):
        assert planner.newest_partition_day(["pMAXVALUE"]) is None
