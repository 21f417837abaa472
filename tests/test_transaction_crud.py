"""Unit tests for the transaction write guard and owner-scoped queries."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from spendbook.core.exceptions import DuplicateTransaction, InternalError, NotFound
from spendbook.crud import transaction as crud
from spendbook.models.transaction import Transaction, utcnow
from spendbook.schemas.transaction import TransactionCreate, TransactionUpdate

ALICE = "user_alice"
BOB = "user_bob"


def make_tx(**overrides) -> TransactionCreate:
    data = {"description": "Coffee", "amount": 450, "category": "Food", "date": "2024-01-01"}
    data.update(overrides)
    return TransactionCreate(**data)


async def count_rows(session) -> int:
    result = await session.execute(select(func.count()).select_from(Transaction))
    return result.scalar_one()


def break_next_commit(monkeypatch, session) -> None:
    """Make the session's next commit fail the way a lost connection does."""
    original = session.commit

    async def commit():
        monkeypatch.setattr(session, "commit", original)
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(session, "commit", commit)


class TestCreateTransaction:
    """Tests for the duplicate-guarded insert."""

    def test_create_assigns_id_and_created_at(self, run_db):
        async def scenario(session):
            tx = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            return tx

        tx = run_db(scenario)
        assert tx.id is not None
        assert tx.created_at is not None
        assert tx.user_id == ALICE
        assert tx.description == "Coffee"
        assert tx.amount == 450
        assert tx.category == "Food"
        assert tx.date == datetime(2024, 1, 1)

    def test_repeat_within_window_reports_first_id(self, run_db):
        async def scenario(session):
            first = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            first_id = first.id
            with pytest.raises(DuplicateTransaction) as excinfo:
                await crud.create_transaction_for_user(ALICE, make_tx(), session)
            return first_id, excinfo.value, await count_rows(session)

        first_id, error, rows = run_db(scenario)
        assert error.duplicate_id == first_id
        assert "last minute" in error.message
        assert rows == 1

    @pytest.mark.parametrize(
        "changed",
        [
            {"description": "Tea"},
            {"amount": 451},
            {"category": "Drinks"},
            {"date": "2024-01-02"},
        ],
    )
    def test_changing_one_field_is_not_a_duplicate(self, run_db, changed):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            await crud.create_transaction_for_user(ALICE, make_tx(**changed), session)
            return await count_rows(session)

        assert run_db(scenario) == 2

    def test_same_tuple_for_other_owner_is_allowed(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            await crud.create_transaction_for_user(BOB, make_tx(), session)
            return await count_rows(session)

        assert run_db(scenario) == 2

    def test_race_past_window_is_stopped_by_unique_constraint(self, run_db, monkeypatch):
        """A second write the window check misses still cannot create a second row."""
        later = utcnow() + timedelta(seconds=61)

        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            monkeypatch.setattr(crud, "utcnow", lambda: later)
            with pytest.raises(DuplicateTransaction) as excinfo:
                await crud.create_transaction_for_user(ALICE, make_tx(), session)
            return excinfo.value, await count_rows(session)

        error, rows = run_db(scenario)
        assert error.duplicate_id is None
        assert rows == 1

    def test_window_check_ignores_rows_older_than_sixty_seconds(self, run_db, monkeypatch):
        later = utcnow() + timedelta(seconds=61)

        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            return await crud.find_recent_duplicate(ALICE, make_tx(), later, session)

        assert run_db(scenario) is None

    def test_session_usable_after_duplicate(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            with pytest.raises(DuplicateTransaction):
                await crud.create_transaction_for_user(ALICE, make_tx(), session)
            await crud.create_transaction_for_user(ALICE, make_tx(amount=500), session)
            return await count_rows(session)

        assert run_db(scenario) == 2

    def test_storage_failure_is_internal_error_and_writes_nothing(self, run_db, monkeypatch):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            break_next_commit(monkeypatch, session)
            with pytest.raises(InternalError) as excinfo:
                await crud.create_transaction_for_user(ALICE, make_tx(amount=500), session)
            rows_after_failure = await count_rows(session)
            await crud.create_transaction_for_user(ALICE, make_tx(amount=500), session)
            return excinfo.value, rows_after_failure, await count_rows(session)

        error, rows_after_failure, rows = run_db(scenario)
        assert "disk I/O error" in error.message
        assert rows_after_failure == 1
        assert rows == 2


class TestListTransactions:
    """Tests for owner-scoped listing."""

    def test_orders_by_date_then_creation_desc(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(description="a", date="2024-01-01"), session)
            await crud.create_transaction_for_user(ALICE, make_tx(description="b", date="2024-03-01"), session)
            await crud.create_transaction_for_user(ALICE, make_tx(description="c", date="2024-01-01"), session)
            return await crud.get_transactions_for_user(ALICE, session)

        rows = run_db(scenario)
        assert [tx.description for tx in rows] == ["b", "c", "a"]

    def test_inclusive_date_range(self, run_db):
        async def scenario(session):
            for day in ("2024-01-01", "2024-01-15", "2024-01-31", "2024-02-01"):
                await crud.create_transaction_for_user(ALICE, make_tx(date=day), session)
            return await crud.get_transactions_for_user(
                ALICE,
                session,
                start_date=datetime(2024, 1, 1),
                end_date=datetime(2024, 1, 31),
            )

        rows = run_db(scenario)
        assert [tx.date.day for tx in rows] == [31, 15, 1]

    def test_single_bound_is_ignored(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(date="2023-06-01"), session)
            await crud.create_transaction_for_user(ALICE, make_tx(date="2024-06-01"), session)
            return await crud.get_transactions_for_user(ALICE, session, start_date=datetime(2024, 1, 1))

        assert len(run_db(scenario)) == 2

    def test_category_filter_and_owner_scope(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(category="Food"), session)
            await crud.create_transaction_for_user(ALICE, make_tx(category="Rent"), session)
            await crud.create_transaction_for_user(BOB, make_tx(category="Food"), session)
            return await crud.get_transactions_for_user(ALICE, session, category="Food")

        rows = run_db(scenario)
        assert len(rows) == 1
        assert rows[0].user_id == ALICE
        assert rows[0].category == "Food"


class TestUpdateAndDelete:
    """Tests for owner-scoped mutation."""

    def test_update_replaces_all_fields(self, run_db):
        async def scenario(session):
            tx = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            update = TransactionUpdate(description="Lunch", amount=1200, category="Meals", date="2024-02-02")
            return await crud.update_transaction(tx.id, ALICE, update, session)

        tx = run_db(scenario)
        assert (tx.description, tx.amount, tx.category, tx.date) == ("Lunch", 1200, "Meals", datetime(2024, 2, 2))

    def test_update_other_owner_is_not_found(self, run_db):
        async def scenario(session):
            tx = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            tx_id = tx.id
            update = TransactionUpdate(description="Hijack", amount=1, category="x", date="2024-01-01")
            with pytest.raises(NotFound):
                await crud.update_transaction(tx_id, BOB, update, session)
            return await crud.get_transaction_by_id(tx_id, ALICE, session)

        assert run_db(scenario).description == "Coffee"

    def test_update_into_existing_tuple_is_duplicate(self, run_db):
        async def scenario(session):
            await crud.create_transaction_for_user(ALICE, make_tx(), session)
            other = await crud.create_transaction_for_user(ALICE, make_tx(amount=1), session)
            with pytest.raises(DuplicateTransaction):
                await crud.update_transaction(other.id, ALICE, TransactionUpdate(**make_tx().model_dump()), session)

        run_db(scenario)

    def test_storage_failure_during_update_keeps_original(self, run_db, monkeypatch):
        async def scenario(session):
            tx_id = (await crud.create_transaction_for_user(ALICE, make_tx(), session)).id
            update = TransactionUpdate(description="Lunch", amount=1200, category="Meals", date="2024-02-02")
            break_next_commit(monkeypatch, session)
            with pytest.raises(InternalError):
                await crud.update_transaction(tx_id, ALICE, update, session)
            stored = await crud.get_transaction_by_id(tx_id, ALICE, session)
            snapshot = (stored.description, stored.amount)
            retried = await crud.update_transaction(tx_id, ALICE, update, session)
            return snapshot, retried.description

        snapshot, retried = run_db(scenario)
        assert snapshot == ("Coffee", 450)
        assert retried == "Lunch"

    def test_delete_returns_id_and_removes_row(self, run_db):
        async def scenario(session):
            tx = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            deleted = await crud.delete_transaction(tx.id, ALICE, session)
            return tx.id, deleted, await count_rows(session)

        tx_id, deleted, rows = run_db(scenario)
        assert deleted == tx_id
        assert rows == 0

    def test_delete_other_owner_is_not_found(self, run_db):
        async def scenario(session):
            tx = await crud.create_transaction_for_user(ALICE, make_tx(), session)
            with pytest.raises(NotFound):
                await crud.delete_transaction(tx.id, BOB, session)
            return await count_rows(session)

        assert run_db(scenario) == 1
