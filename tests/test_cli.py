"""Tests for the partition maintenance command line."""

import pytest

from partitioning_fakes import FakeSchemaInspector, RecordingExecutor
from datasource_tools import cli
from datasource_tools.core.enums import ExitCode
from datasource_tools.partitioning import DirectSink, PartitioningOrchestrator


class OrchestratorFactory:
    """Builds orchestrators over a fake schema and remembers the dry-run flag."""

    def __init__(self, inspector: FakeSchemaInspector, fail_on: str | None = None):
        self.inspector = inspector
        self.executor = RecordingExecutor(fail_on=fail_on)
        self.dry_run = None

    def __call__(self, dry_run: bool) -> PartitioningOrchestrator:
        self.dry_run = dry_run
        return PartitioningOrchestrator(self.inspector, DirectSink(self.executor))


@pytest.fixture
def fixed_today(monkeypatch, today):
    monkeypatch.setattr("datasource_tools.partitioning.orchestrator.today_in_zone", lambda: today)


class TestPartitionByDate:
    def test_success(self, orders_inspector, capsys):
        factory = OrchestratorFactory(orders_inspector)
        code = cli.main(
            ["partition-by-date", "orders", "2023-09-25", "2023-09-27"],
            orchestrator_factory=factory,
        )
        out = capsys.readouterr().out
        assert code == ExitCode.SUCCESS
        assert factory.dry_run is False
        assert len(factory.executor.executed) == 3
        assert "EXECUTED" in out
        assert "PARTITION p20230927 VALUES LESS THAN (to_days('2023-09-28'))" in out
        assert "RESULTED TABLE STRUCTURE:" in out

    def test_custom_partition_column(self, orders_inspector):
        factory = OrchestratorFactory(orders_inspector)
        cli.main(
            ["partition-by-date", "orders", "2023-09-25", "2023-09-26", "--partitionColumn", "day"],
            orchestrator_factory=factory,
        )
        assert factory.executor.executed[0].startswith("ALTER TABLE orders ADD COLUMN day DATE")

    def test_dry_run_flag_forwarded(self, orders_inspector):
        factory = OrchestratorFactory(orders_inspector)
        cli.main(
            ["partition-by-date", "orders", "2023-09-25", "2023-09-26", "--dry-run"],
            orchestrator_factory=factory,
        )
        assert factory.dry_run is True

    def test_invalid_input_prints_errors_and_usage(self, orders_inspector, capsys):
        factory = OrchestratorFactory(orders_inspector)
        code = cli.main(
            ["partition-by-date", "orders", "2023-10-01", "2023-09-25"],
            orchestrator_factory=factory,
        )
        err = capsys.readouterr().err
        assert code == ExitCode.INVALID
        assert "Invalid input date(s)" in err
        assert "usage: datasource-tools partition-by-date" in err
        assert factory.executor.executed == []

    def test_statement_failure(self, orders_inspector, capsys):
        factory = OrchestratorFactory(orders_inspector, fail_on="PARTITION BY RANGE")
        code = cli.main(
            ["partition-by-date", "orders", "2023-09-25", "2023-09-26"],
            orchestrator_factory=factory,
        )
        out = capsys.readouterr().out
        assert code == ExitCode.FAILURE
        assert "FAILED -- simulated failure" in out

    def test_missing_arguments_exit_through_argparse(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["partition-by-date", "orders"])
        assert exc_info.value.code == 2


@pytest.mark.usefixtures("fixed_today")
class TestUpdatePartitions:
    def test_defaults(self, partitioned_inspector, capsys):
        factory = OrchestratorFactory(partitioned_inspector)
        code = cli.main(["update-partitions", "orders"], orchestrator_factory=factory)
        assert code == ExitCode.SUCCESS
        executed = factory.executor.executed
        assert "INTO (PARTITION p20230927 " in executed[0]
        assert executed[1] == "ALTER TABLE orders DROP PARTITION p20230918;"

    def test_explicit_window(self, partitioned_inspector):
        factory = OrchestratorFactory(partitioned_inspector)
        cli.main(["update-partitions", "orders", "3", "14"], orchestrator_factory=factory)
        assert len(factory.executor.executed) == 1
        assert "PARTITION p20230928 " in factory.executor.executed[0]

    def test_window_below_minimum(self, partitioned_inspector, capsys):
        factory = OrchestratorFactory(partitioned_inspector)
        code = cli.main(["update-partitions", "orders", "1", "7"], orchestrator_factory=factory)
        err = capsys.readouterr().err
        assert code == ExitCode.INVALID
        assert "at least 2" in err
        assert "usage: datasource-tools update-partitions" in err

    def test_not_partitioned(self, orders_inspector, capsys):
        code = cli.main(
            ["update-partitions", "orders"], orchestrator_factory=OrchestratorFactory(orders_inspector)
        )
        assert code == ExitCode.INVALID
        assert "partition-by-date" in capsys.readouterr().err


def test_unexpected_error_is_failure(capsys):
    def broken_factory(dry_run):
        raise RuntimeError("connection refused")

    code = cli.main(["update-partitions", "orders"], orchestrator_factory=broken_factory)
    assert code == ExitCode.FAILURE
    assert "update-partitions failed: connection refused" in capsys.readouterr().err
