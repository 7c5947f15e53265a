"""Unit tests for the credit-ledger custody and AccountApplicationService."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.tk_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    SinkTransferFailedError,
)
from src.tk_custody.application.schemas import cursor_decode, cursor_encode
from src.tk_custody.application.service import AccountApplicationService
from src.tk_custody.domain.models import Account, LedgerEntry
from src.tk_custody.infrastructure.credit_custody import ROUND_REFERENCE, CreditLedgerCustody
from src.tk_custody.infrastructure.persistence import AccountRepository


def _make_account(available: int = 1_000) -> Account:
    return Account(
        id="uuid-1",
        user_id="user-1",
        available_balance=available,
        version=1,
        created_at=datetime.now(UTC),
        updated_at=datetime.now(UTC),
    )


def _make_entry(entry_id: int = 1, amount: int = 100, entry_type: str = "DEPOSIT") -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        user_id="user-1",
        entry_type=entry_type,
        amount=amount,
        balance_after=1_100,
        created_at=datetime.now(UTC),
    )


class TestCreditLedgerCustody:
    async def test_collect_debits_bet_stake(self) -> None:
        repo = AsyncMock()
        repo.debit.return_value = (_make_account(900), _make_entry(amount=-100))
        custody = CreditLedgerCustody(repo=repo)

        await custody.collect(MagicMock(), "user-1", 100, 7)

        args = repo.debit.await_args.args
        assert args[1:6] == ("user-1", 100, "BET_STAKE", ROUND_REFERENCE, "7")

    async def test_collect_propagates_insufficient_balance(self) -> None:
        repo = AsyncMock()
        repo.debit.side_effect = InsufficientBalanceError(100, 5)
        with pytest.raises(InsufficientBalanceError):
            await CreditLedgerCustody(repo=repo).collect(MagicMock(), "user-1", 100, 7)

    async def test_deliver_credits_claim_payout(self) -> None:
        repo = AsyncMock()
        repo.credit.return_value = (_make_account(1_028), _make_entry(amount=28))

        await CreditLedgerCustody(repo=repo).deliver(MagicMock(), "user-1", 28, 7)

        assert repo.credit.await_args.args[3] == "CLAIM_PAYOUT"

    async def test_deliver_to_missing_account_is_sink_failure(self) -> None:
        repo = AsyncMock()
        repo.credit.side_effect = AccountNotFoundError("ghost")
        with pytest.raises(SinkTransferFailedError):
            await CreditLedgerCustody(repo=repo).deliver(MagicMock(), "ghost", 28, 7)

    async def test_fee_to_missing_sink_is_sink_failure(self) -> None:
        repo = AsyncMock()
        repo.credit.side_effect = AccountNotFoundError("PLATFORM_FEE")
        with pytest.raises(SinkTransferFailedError):
            await CreditLedgerCustody(repo=repo).collect_fee(MagicMock(), "PLATFORM_FEE", 7, 7)


class TestAccountRepository:
    async def test_debit_missing_account(self) -> None:
        db = AsyncMock()
        empty = MagicMock()
        empty.fetchone.return_value = None
        db.execute.return_value = empty

        with pytest.raises(AccountNotFoundError):
            await AccountRepository().debit(db, "ghost", 10, "WITHDRAW", None, None, "x")

    async def test_debit_insufficient_balance(self) -> None:
        db = AsyncMock()
        no_row = MagicMock()
        no_row.fetchone.return_value = None
        acc_row = MagicMock()
        acc_row.fetchone.return_value = MagicMock(available_balance=5)
        db.execute.side_effect = [no_row, acc_row]

        with pytest.raises(InsufficientBalanceError) as exc:
            await AccountRepository().debit(db, "user-1", 10, "WITHDRAW", None, None, "x")
        assert "5" in exc.value.message

    async def test_credit_missing_account(self) -> None:
        db = AsyncMock()
        empty = MagicMock()
        empty.fetchone.return_value = None
        db.execute.return_value = empty

        with pytest.raises(AccountNotFoundError):
            await AccountRepository().credit(db, "ghost", 10, "DEPOSIT", None, None, "x")


class TestAccountApplicationService:
    async def test_get_balance(self) -> None:
        repo = AsyncMock()
        repo.get_account_by_user_id.return_value = _make_account(150_000_000)

        result = await AccountApplicationService(repo=repo).get_balance(MagicMock(), "user-1")

        assert result.available_balance == 150_000_000
        assert result.available_balance_display == "1.50000000"

    async def test_get_balance_missing_account(self) -> None:
        repo = AsyncMock()
        repo.get_account_by_user_id.return_value = None
        with pytest.raises(AccountNotFoundError):
            await AccountApplicationService(repo=repo).get_balance(MagicMock(), "user-1")

    async def test_deposit_commits(self) -> None:
        repo = AsyncMock()
        repo.credit.return_value = (_make_account(1_100), _make_entry(5, 100))
        db = AsyncMock()

        result = await AccountApplicationService(repo=repo).deposit(db, "user-1", 100)

        assert result.available_balance == 1_100
        assert result.ledger_entry_id == 5
        db.commit.assert_awaited_once()

    async def test_withdraw_failure_rolls_back(self) -> None:
        repo = AsyncMock()
        repo.debit.side_effect = InsufficientBalanceError(100, 0)
        db = AsyncMock()

        with pytest.raises(InsufficientBalanceError):
            await AccountApplicationService(repo=repo).withdraw(db, "user-1", 100)
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_list_ledger_pages(self) -> None:
        repo = AsyncMock()
        repo.list_ledger_entries.return_value = [_make_entry(i) for i in (9, 8, 7)]

        result = await AccountApplicationService(repo=repo).list_ledger(
            MagicMock(), "user-1", None, 2, None
        )

        assert [e.id for e in result.items] == [9, 8]
        assert result.has_more
        assert cursor_decode(result.next_cursor) == 8


class TestCursor:
    def test_roundtrip(self) -> None:
        assert cursor_decode(cursor_encode(42)) == 42

    def test_garbage_decodes_to_none(self) -> None:
        assert cursor_decode("not-base64!!") is None
