from concurrent.futures import ThreadPoolExecutor

import pytest

from ocrify.storage.postgres_store import PostgresStore
from ocrify.tracking.exceptions import (
    CounterInvariantError,
    IllegalTransitionError,
    QueueEntryNotFoundError,
)
from ocrify.tracking.models import FileState


@pytest.mark.integration
class TestQueueEntries:
    def test_allocations_are_unique_under_concurrency(
        self, pg_store: PostgresStore, integration_cleanup: list[str]
    ) -> None:
        before = pg_store.get_aggregate_counters().total_users
        with ThreadPoolExecutor(max_workers=8) as pool:
            positions = list(
                pool.map(lambda _: pg_store.allocate_queue_entry().queue_position, range(40))
            )
        integration_cleanup.extend(positions)

        assert len(set(positions)) == 40
        assert all(p.startswith("user") for p in positions)
        assert pg_store.get_aggregate_counters().total_users >= before + 40

    def test_unknown_position(self, pg_store: PostgresStore) -> None:
        with pytest.raises(QueueEntryNotFoundError):
            pg_store.get_queue_entry("no-such-position")

    def test_concurrent_outcomes_are_not_lost(
        self, pg_store: PostgresStore, queue_position: str
    ) -> None:
        for i in range(20):
            pg_store.create_file_record(f"f{i}.png", queue_position, "PNG", "TXT")
            pg_store.record_file_uploaded(queue_position)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(
                pool.map(
                    lambda i: pg_store.apply_outcomes(
                        queue_position, treated=i % 2, not_treated=1 - i % 2
                    ),
                    range(20),
                )
            )

        entry = pg_store.get_queue_entry(queue_position)
        assert entry.files_uploaded == 20
        assert entry.files_treated == 10
        assert entry.files_not_treated == 10

    def test_overflow_is_rejected(self, pg_store: PostgresStore, queue_position: str) -> None:
        pg_store.record_file_uploaded(queue_position)
        pg_store.apply_outcomes(queue_position, treated=1, not_treated=0)

        with pytest.raises(CounterInvariantError):
            pg_store.apply_outcomes(queue_position, treated=1, not_treated=0)

        assert pg_store.get_queue_entry(queue_position).files_treated == 1


@pytest.mark.integration
class TestFileRecords:
    def test_lifecycle_and_processing_time(
        self, pg_store: PostgresStore, queue_position: str
    ) -> None:
        ok = pg_store.create_file_record("ok.png", queue_position, "PNG", "TXT")
        bad = pg_store.create_file_record("bad.png", queue_position, "PNG", "TXT")
        pg_store.record_file_uploaded(queue_position)
        pg_store.record_file_uploaded(queue_position)
        pg_store.stamp_extraction_start(queue_position)

        pg_store.mark_file_processing(ok.id)
        done = pg_store.complete_file_record(ok.id, FileState.SUCCESS, "eng", "memo_budget")
        pg_store.complete_file_record(bad.id, FileState.FAILED, "unknown")
        entry = pg_store.apply_outcomes(queue_position, treated=1, not_treated=1)

        assert done.state is FileState.SUCCESS
        assert done.synthesized_name == "memo_budget"
        assert done.ended_at is not None
        assert done.duration_seconds is not None
        assert entry.total_processing_time == pytest.approx(done.duration_seconds)
        assert entry.extraction_started_at is not None
        assert entry.extraction_ended_at is not None

    def test_second_completion_is_rejected(
        self, pg_store: PostgresStore, queue_position: str
    ) -> None:
        record = pg_store.create_file_record("a.png", queue_position, "PNG", "TXT")
        pg_store.complete_file_record(record.id, FileState.FAILED, "unknown")

        with pytest.raises(IllegalTransitionError):
            pg_store.complete_file_record(record.id, FileState.SUCCESS, "eng")

        assert pg_store.get_file_record(record.id).state is FileState.FAILED

    def test_list_newest_first(self, pg_store: PostgresStore, queue_position: str) -> None:
        first = pg_store.create_file_record("a.png", queue_position, "PNG", "TXT")
        second = pg_store.create_file_record("b.png", queue_position, "PNG", "TXT")

        records = pg_store.list_file_records(queue_position)

        assert [r.id for r in records] == [second.id, first.id]


@pytest.mark.integration
class TestAggregateCounters:
    def test_missing_singleton_row_is_recreated(
        self, pg_store: PostgresStore, db_conn, integration_cleanup: list[str]
    ) -> None:
        before = pg_store.get_aggregate_counters()
        with db_conn.cursor() as cur:
            cur.execute("DELETE FROM aggregate_counters WHERE id = 1")
        db_conn.commit()
        try:
            position = pg_store.allocate_queue_entry().queue_position
            integration_cleanup.append(position)
            pg_store.record_file_uploaded(position)

            counters = pg_store.get_aggregate_counters()
            assert (counters.total_users, counters.total_files) == (1, 1)
        finally:
            with db_conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO aggregate_counters (id, total_users, total_files)
                    VALUES (1, %s, %s)
                    ON CONFLICT (id) DO UPDATE
                    SET total_users = EXCLUDED.total_users,
                        total_files = EXCLUDED.total_files
                    """,
                    (before.total_users + 1, before.total_files + 1),
                )
            db_conn.commit()
