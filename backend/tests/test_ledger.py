from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app import models
from app.services import ledger
from app.services.errors import (
    AccountNotFound,
    FinancialAccountNotFound,
    IdempotencyKeyConflict,
    InvalidAmount,
)


def test_quantize_money_rounds_half_up():
    assert ledger.quantize_money("10.005") == Decimal("10.01")
    assert ledger.quantize_money(Decimal("2.344")) == Decimal("2.34")
    assert ledger.quantize_money(7) == Decimal("7.00")


def test_quantize_money_rejects_garbage():
    with pytest.raises(InvalidAmount):
        ledger.quantize_money("abc")


@pytest.mark.parametrize("valor", ["1e30", Decimal("1e30"), "NaN", "Infinity"])
def test_quantize_money_rejects_values_it_cannot_represent(valor):
    with pytest.raises(InvalidAmount):
        ledger.quantize_money(valor)


def test_require_positive_amount_enforces_the_limit():
    assert ledger.require_positive_amount("9999999999.99") == ledger.MAX_BALANCE
    with pytest.raises(InvalidAmount):
        ledger.require_positive_amount("10000000000.00")


@pytest.mark.parametrize("valor", ["0", "-1", "0.001"])
def test_require_positive_amount_rejects_non_positive(valor):
    with pytest.raises(InvalidAmount) as exc:
        ledger.require_positive_amount(valor)
    assert exc.value.field == "valor"


def test_append_entrada_records_snapshots_and_moves_balance(db_session, make_bank_account):
    account = make_bank_account(saldo="100.00")

    txn = ledger.append_transaction(
        db_session,
        conta_bancaria_id=account.id,
        descricao="Depósito",
        valor="50.25",
        tipo=models.TransactionDirection.entrada,
    )

    assert txn.saldo_anterior == Decimal("100.00")
    assert txn.saldo_novo == Decimal("150.25")
    assert txn.valor == Decimal("50.25")

    db_session.refresh(account)
    assert account.saldo == Decimal("150.25")


def test_append_saida_may_go_negative(db_session, make_bank_account):
    account = make_bank_account(saldo="10.00")

    txn = ledger.append_transaction(
        db_session,
        conta_bancaria_id=account.id,
        descricao="Tarifa",
        valor="25.00",
        tipo=models.TransactionDirection.saida,
    )

    assert txn.saldo_novo == Decimal("-15.00")
    db_session.refresh(account)
    assert account.saldo == Decimal("-15.00")


def test_append_rejects_non_positive_amount_without_writing(db_session, make_bank_account):
    account = make_bank_account(saldo="10.00")

    with pytest.raises(InvalidAmount):
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=account.id,
            descricao="Zero",
            valor="0",
            tipo=models.TransactionDirection.entrada,
        )

    assert db_session.query(models.BankTransaction).count() == 0


def test_append_unknown_account(db_session):
    with pytest.raises(AccountNotFound):
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=999,
            descricao="Nada",
            valor="1.00",
            tipo=models.TransactionDirection.entrada,
        )


def test_append_writes_audit_row_in_same_transaction(db_session, make_bank_account):
    account = make_bank_account(saldo="0.00")

    txn = ledger.append_transaction(
        db_session,
        conta_bancaria_id=account.id,
        descricao="Depósito",
        valor="5.00",
        tipo=models.TransactionDirection.entrada,
        actor_user_id=7,
    )

    log = (
        db_session.query(models.AuditLog)
        .filter(models.AuditLog.action == "bank_transaction.created")
        .one()
    )
    assert log.user_id == 7
    assert f'"bank_transaction_id": {txn.id}' in log.payload_json


def test_append_replays_idempotency_key(db_session, make_bank_account):
    account = make_bank_account(saldo="0.00")

    first = ledger.append_transaction(
        db_session,
        conta_bancaria_id=account.id,
        descricao="Depósito",
        valor="40.00",
        tipo=models.TransactionDirection.entrada,
        idempotency_key="dep-1",
    )
    second = ledger.append_transaction(
        db_session,
        conta_bancaria_id=account.id,
        descricao="Depósito",
        valor="40.00",
        tipo=models.TransactionDirection.entrada,
        idempotency_key="dep-1",
    )

    assert second.id == first.id
    assert db_session.query(models.BankTransaction).count() == 1
    db_session.refresh(account)
    assert account.saldo == Decimal("40.00")


def test_every_row_chains_on_the_previous_balance(db_session, make_bank_account):
    account = make_bank_account(saldo="100.00")
    movements = [
        ("30.00", models.TransactionDirection.saida),
        ("12.50", models.TransactionDirection.entrada),
        ("200.00", models.TransactionDirection.saida),
    ]
    for valor, tipo in movements:
        ledger.append_transaction(
            db_session, conta_bancaria_id=account.id, descricao="mov", valor=valor, tipo=tipo
        )

    rows = (
        db_session.query(models.BankTransaction)
        .order_by(models.BankTransaction.id.asc())
        .all()
    )
    expected = Decimal("100.00")
    for row in rows:
        assert row.saldo_anterior == expected
        delta = row.valor if row.tipo == models.TransactionDirection.entrada else -row.valor
        assert row.saldo_novo == row.saldo_anterior + delta
        expected = row.saldo_novo

    db_session.refresh(account)
    assert account.saldo == expected == Decimal("-117.50")


def test_list_transactions_newest_first_with_date_window(db_session, make_bank_account):
    account = make_bank_account(saldo="0.00")
    base = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
    for offset in (0, 1, 5):
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=account.id,
            descricao=f"dia {offset}",
            valor="1.00",
            tipo=models.TransactionDirection.entrada,
            data_transacao=base + timedelta(days=offset),
        )

    everything = ledger.list_transactions(db_session, conta_bancaria_id=account.id)
    assert [t.descricao for t in everything] == ["dia 5", "dia 1", "dia 0"]

    window = ledger.list_transactions(
        db_session,
        conta_bancaria_id=account.id,
        date_from=base.date(),
        date_to=(base + timedelta(days=1)).date(),
    )
    assert [t.descricao for t in window] == ["dia 1", "dia 0"]


def test_append_unknown_financial_account(db_session, make_bank_account):
    account = make_bank_account(saldo="10.00")

    with pytest.raises(FinancialAccountNotFound) as exc:
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=account.id,
            conta_financeira_id=9999,
            descricao="x",
            valor="1.00",
            tipo=models.TransactionDirection.entrada,
        )
    assert exc.value.field == "contaFinanceiraId"

    db_session.expire_all()
    assert db_session.get(models.BankAccount, account.id).saldo == Decimal("10.00")
    assert db_session.query(models.BankTransaction).count() == 0


def test_append_rejects_key_reused_for_other_entry(db_session, make_bank_account):
    caixa = make_bank_account(nome="Caixa", saldo="0.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")
    ledger.append_transaction(
        db_session,
        conta_bancaria_id=caixa.id,
        descricao="deposito",
        valor="10.00",
        tipo=models.TransactionDirection.entrada,
        idempotency_key="dep-1",
    )

    with pytest.raises(IdempotencyKeyConflict):
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=banco.id,
            descricao="deposito",
            valor="10.00",
            tipo=models.TransactionDirection.entrada,
            idempotency_key="dep-1",
        )

    db_session.expire_all()
    assert db_session.get(models.BankAccount, banco.id).saldo == Decimal("0.00")


def test_balance_beyond_column_range_is_invalid(db_session, make_bank_account):
    account = make_bank_account(saldo="9999999999.00")

    with pytest.raises(InvalidAmount):
        ledger.append_transaction(
            db_session,
            conta_bancaria_id=account.id,
            descricao="x",
            valor="1.00",
            tipo=models.TransactionDirection.entrada,
        )

    db_session.expire_all()
    assert db_session.get(models.BankAccount, account.id).saldo == Decimal("9999999999.00")
