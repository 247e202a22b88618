"""
Wallet ledger tests: credit, debit, transfer and the balance invariant
"""
import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from flight_booking.models import TransactionKind, Wallet, WalletTransaction
from flight_booking.services import InsufficientFundsError, InvalidInputError, WalletService
from flight_booking.services.wallet_service import wallet_lock_query


async def ledger_size(db, wallet_id):
    result = await db.execute(
        select(func.count(WalletTransaction.id)).where(WalletTransaction.wallet_id == wallet_id)
    )
    return result.scalar()


def ledger_entries_counted(kind):
    return REGISTRY.get_sample_value("wallet_transactions_total", {"kind": kind}) or 0.0


@pytest.mark.asyncio
async def test_wallet_created_lazily_with_starting_balance(db):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    assert wallet.balance == 50000
    assert wallet.starting_balance == 50000
    assert await ledger_size(db, wallet.id) == 0

    again = await WalletService.get_or_create_wallet(db, user_id=1)
    assert again.id == wallet.id


@pytest.mark.asyncio
async def test_credit_raises_balance_and_appends_entry(db):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    entry = await WalletService.credit(db, wallet, 1500, "Top-up")
    await db.commit()

    assert wallet.balance == 51500
    assert entry.amount == 1500
    assert entry.kind == TransactionKind.CREDIT
    assert entry.description == "Top-up"


@pytest.mark.asyncio
async def test_debit_lowers_balance_with_negative_entry(db):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    entry = await WalletService.debit(db, wallet, 3163, "Flight booking - AI101")
    await db.commit()

    assert wallet.balance == 46837
    assert entry.amount == -3163
    assert entry.kind == TransactionKind.DEBIT


@pytest.mark.asyncio
async def test_overdraft_is_rejected_without_side_effects(db):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    with pytest.raises(InsufficientFundsError) as exc_info:
        await WalletService.debit(db, wallet, 50001, "Too much")

    assert exc_info.value.context == {"required": 50001, "available": 50000}
    assert "Top up your wallet" in exc_info.value.message
    await db.rollback()
    await db.refresh(wallet)
    assert wallet.balance == 50000
    assert await ledger_size(db, wallet.id) == 0


@pytest.mark.asyncio
async def test_debit_of_exact_balance_empties_wallet(db):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    await WalletService.debit(db, wallet, 50000, "Everything")
    await db.commit()

    assert wallet.balance == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -100])
async def test_non_positive_amounts_are_rejected(db, amount):
    wallet = await WalletService.get_or_create_wallet(db, user_id=1)

    with pytest.raises(InvalidInputError):
        await WalletService.credit(db, wallet, amount, "nope")
    with pytest.raises(InvalidInputError):
        await WalletService.debit(db, wallet, amount, "nope")


@pytest.mark.asyncio
async def test_withdraw_overdraft_leaves_wallet_untouched(db):
    await WalletService.add_funds(db, user_id=1, amount=500)

    with pytest.raises(InsufficientFundsError):
        await WalletService.withdraw(db, user_id=1, amount=60000)

    wallet = await WalletService.find_wallet(db, user_id=1)
    assert wallet.balance == 50500
    assert await ledger_size(db, wallet.id) == 1


@pytest.mark.asyncio
async def test_transfer_moves_funds(db):
    sender = await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=2000)

    recipient = await WalletService.find_wallet(db, user_id=2)
    assert sender.balance == 48000
    assert recipient.balance == 52000


@pytest.mark.asyncio
async def test_transfer_to_self_is_rejected(db):
    with pytest.raises(InvalidInputError):
        await WalletService.transfer(db, from_user_id=1, to_user_id=1, amount=100)


@pytest.mark.asyncio
async def test_failed_transfer_debit_means_no_credit(db):
    with pytest.raises(InsufficientFundsError):
        await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=50001)

    sender = await WalletService.find_wallet(db, user_id=1)
    recipient = await WalletService.find_wallet(db, user_id=2)
    assert sender.balance == 50000
    assert recipient.balance == 50000
    assert await ledger_size(db, recipient.id) == 0


@pytest.mark.asyncio
async def test_failed_transfer_credit_rolls_back_debit(db, monkeypatch):
    await WalletService.get_or_create_wallet(db, user_id=1)
    await WalletService.get_or_create_wallet(db, user_id=2)

    async def broken_credit(*args, **kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(WalletService, "credit", staticmethod(broken_credit))
    debits_before = ledger_entries_counted("debit")

    with pytest.raises(RuntimeError):
        await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=1000)

    sender = await WalletService.find_wallet(db, user_id=1)
    assert sender.balance == 50000
    assert await ledger_size(db, sender.id) == 0
    assert ledger_entries_counted("debit") == debits_before


@pytest.mark.asyncio
async def test_transactions_newest_first(db):
    await WalletService.add_funds(db, user_id=1, amount=100, description="first")
    await WalletService.withdraw(db, user_id=1, amount=40, description="second")
    await WalletService.add_funds(db, user_id=1, amount=7, description="third")

    transactions = await WalletService.get_transactions(db, user_id=1)

    assert [t.description for t in transactions] == ["third", "second", "first"]
    assert [t.amount for t in transactions] == [7, -40, 100]


@pytest.mark.asyncio
async def test_balance_matches_ledger(db):
    await WalletService.add_funds(db, user_id=1, amount=1200)
    await WalletService.withdraw(db, user_id=1, amount=300)
    await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=4500)
    with pytest.raises(InsufficientFundsError):
        await WalletService.withdraw(db, user_id=1, amount=10 ** 6)

    for user_id in (1, 2):
        check = await WalletService.verify_ledger(db, user_id)
        assert check.is_consistent

    sender = await db.scalar(select(Wallet).where(Wallet.user_id == 1))
    assert sender.balance == 50000 + 1200 - 300 - 4500


@pytest.mark.asyncio
async def test_transfer_locks_both_wallets_before_writing(db, sql_statements):
    # Recipient's wallet gets the lower id
    await WalletService.get_or_create_wallet(db, user_id=2)
    await WalletService.get_or_create_wallet(db, user_id=1)
    sql_statements.clear()

    await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=100)

    lock_at = next(i for i, sql in enumerate(sql_statements) if "ORDER BY wallets.id" in sql)
    first_write = next(i for i, sql in enumerate(sql_statements) if sql.startswith("UPDATE wallets"))
    assert lock_at < first_write


def test_wallet_lock_query_orders_row_locks_by_id():
    sql = str(wallet_lock_query([9, 4]).compile(dialect=postgresql.dialect()))

    assert "ORDER BY wallets.id" in sql
    assert sql.rstrip().endswith("FOR UPDATE")


@pytest.mark.asyncio
async def test_committed_transfer_counts_both_entries(db):
    debits_before = ledger_entries_counted("debit")
    credits_before = ledger_entries_counted("credit")

    await WalletService.transfer(db, from_user_id=1, to_user_id=2, amount=100)

    assert ledger_entries_counted("debit") == debits_before + 1
    assert ledger_entries_counted("credit") == credits_before + 1
