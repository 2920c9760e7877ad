"""Bank transaction ledger.

Single place where a bank account balance changes. Every movement reads the
balance under a row lock, appends one BankTransaction carrying the
before/after snapshots and writes the new balance, all in the caller's
transaction.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app import models
from app.database import supports_row_locks
from app.services.audit import audit_event
from app.services.errors import (
    AccountNotFound,
    FinancialAccountNotFound,
    IdempotencyKeyConflict,
    InvalidAmount,
)

logger = logging.getLogger("agencia.ledger")

_CENT = Decimal("0.01")
# Largest value a Numeric(12, 2) balance column holds.
MAX_BALANCE = Decimal("9999999999.99")


def quantize_money(value) -> Decimal:
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise InvalidAmount("Valor inválido")
    if not d.is_finite():
        raise InvalidAmount("Valor inválido")
    try:
        return d.quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount("Valor inválido")


def require_positive_amount(value, *, limit: Decimal = MAX_BALANCE) -> Decimal:
    amount = quantize_money(value)
    if amount <= 0:
        raise InvalidAmount()
    if amount > limit:
        raise InvalidAmount("Valor excede o limite permitido")
    return amount


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def lock_bank_account(
    db: Session, account_id: int, *, field: str | None = None
) -> models.BankAccount:
    """Fetch a bank account holding its row lock until the transaction ends."""

    stmt = select(models.BankAccount).where(models.BankAccount.id == int(account_id))
    if supports_row_locks(db):
        stmt = stmt.with_for_update(of=models.BankAccount)
    # populate_existing: re-read the balance even if the row is already in the identity map.
    account = db.execute(stmt.execution_options(populate_existing=True)).scalars().first()
    if account is None:
        raise AccountNotFound(int(account_id), field=field)
    return account


def lock_bank_accounts(db: Session, account_ids: Iterable[int]) -> dict[int, models.BankAccount]:
    """Lock several accounts in ascending id order; missing ids are left out.

    A fixed order means two transfers over the same pair in opposite
    directions queue behind each other instead of deadlocking.
    """

    locked: dict[int, models.BankAccount] = {}
    for account_id in sorted({int(a) for a in account_ids}):
        try:
            locked[account_id] = lock_bank_account(db, account_id)
        except AccountNotFound:
            continue
    return locked


def post_entry(
    db: Session,
    *,
    account: models.BankAccount,
    descricao: str,
    valor: Decimal,
    tipo: models.TransactionDirection,
    data_transacao: datetime,
    conta_financeira_id: int | None = None,
    observacoes: str | None = None,
    anexos: list[str] | None = None,
    conciliado: bool = False,
    idempotency_key: str | None = None,
) -> models.BankTransaction:
    """Append one ledger row and move the balance. `account` must already be locked."""

    valor = require_positive_amount(valor)
    saldo_anterior = quantize_money(account.saldo or 0)
    if tipo == models.TransactionDirection.entrada:
        saldo_novo = saldo_anterior + valor
    else:
        saldo_novo = saldo_anterior - valor
    if abs(saldo_novo) > MAX_BALANCE:
        raise InvalidAmount("Saldo resultante excede o limite da conta")

    txn = models.BankTransaction(
        conta_bancaria_id=account.id,
        conta_financeira_id=conta_financeira_id,
        descricao=descricao,
        valor=valor,
        tipo=tipo,
        data_transacao=data_transacao,
        saldo_anterior=saldo_anterior,
        saldo_novo=saldo_novo,
        conciliado=bool(conciliado),
        anexos=list(anexos or []),
        observacoes=observacoes,
        idempotency_key=idempotency_key,
    )
    db.add(txn)

    account.saldo = saldo_novo
    account.updated_at = utc_now()
    db.add(account)
    db.flush()

    logger.info(
        "ledger_entry_posted",
        extra={
            "bank_account_id": account.id,
            "bank_transaction_id": txn.id,
            "tipo": tipo.value,
            "valor": str(valor),
            "saldo_anterior": str(saldo_anterior),
            "saldo_novo": str(saldo_novo),
            "conta_financeira_id": conta_financeira_id,
        },
    )
    return txn


def find_by_idempotency_key(db: Session, key: str | None) -> models.BankTransaction | None:
    if not key:
        return None
    return (
        db.query(models.BankTransaction)
        .filter(models.BankTransaction.idempotency_key == str(key))
        .first()
    )


def ensure_same_operation(
    txn: models.BankTransaction,
    *,
    conta_bancaria_id: int,
    valor: Decimal,
    tipo: models.TransactionDirection,
    conta_financeira_id: int | None = None,
) -> None:
    """A replayed key must describe the movement it was first recorded with."""

    if (
        txn.conta_bancaria_id != int(conta_bancaria_id)
        or quantize_money(txn.valor) != valor
        or txn.tipo != tipo
        or txn.conta_financeira_id != conta_financeira_id
    ):
        logger.warning(
            "idempotency_key_conflict",
            extra={"bank_transaction_id": txn.id, "idempotency_key": txn.idempotency_key},
        )
        raise IdempotencyKeyConflict(txn.idempotency_key)


def append_transaction(
    db: Session,
    *,
    conta_bancaria_id: int,
    descricao: str,
    valor,
    tipo: models.TransactionDirection,
    data_transacao: datetime | None = None,
    conta_financeira_id: int | None = None,
    observacoes: str | None = None,
    anexos: list[str] | None = None,
    conciliado: bool = False,
    idempotency_key: str | None = None,
    actor_user_id: int | None = None,
    request_id: str | None = None,
) -> models.BankTransaction:
    """Direct ledger append. No sufficiency check: an outflow may go negative."""

    amount = require_positive_amount(valor)

    try:
        account = lock_bank_account(db, conta_bancaria_id)

        # Checked under the account lock so a concurrent replay sees the committed row.
        existing = find_by_idempotency_key(db, idempotency_key)
        if existing is not None:
            ensure_same_operation(
                existing,
                conta_bancaria_id=account.id,
                valor=amount,
                tipo=tipo,
                conta_financeira_id=conta_financeira_id,
            )
            db.rollback()
            logger.info(
                "ledger_entry_replayed",
                extra={"bank_transaction_id": existing.id, "idempotency_key": idempotency_key},
            )
            return existing

        if conta_financeira_id is not None and db.get(models.FinancialAccount, conta_financeira_id) is None:
            raise FinancialAccountNotFound(conta_financeira_id, field="contaFinanceiraId")

        txn = post_entry(
            db,
            account=account,
            descricao=descricao,
            valor=amount,
            tipo=tipo,
            data_transacao=data_transacao or utc_now(),
            conta_financeira_id=conta_financeira_id,
            observacoes=observacoes,
            anexos=anexos,
            conciliado=conciliado,
            idempotency_key=idempotency_key,
        )

        audit_event(
            "bank_transaction.created",
            actor_user_id,
            {
                "bank_transaction_id": txn.id,
                "conta_bancaria_id": account.id,
                "tipo": tipo.value,
                "valor": str(amount),
                "saldo_anterior": str(txn.saldo_anterior),
                "saldo_novo": str(txn.saldo_novo),
            },
            db=db,
            request_id=request_id,
            commit=False,
        )

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(txn)
    return txn


def day_start(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def day_end(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    # Whole day inclusive.
    return datetime.combine(value + timedelta(days=1), time.min)


def list_transactions(
    db: Session,
    *,
    conta_bancaria_id: int,
    date_from: date | datetime | None = None,
    date_to: date | datetime | None = None,
) -> list[models.BankTransaction]:
    q = db.query(models.BankTransaction).filter(
        models.BankTransaction.conta_bancaria_id == int(conta_bancaria_id)
    )
    if date_from is not None:
        q = q.filter(models.BankTransaction.data_transacao >= day_start(date_from))
    if date_to is not None:
        end = day_end(date_to)
        if isinstance(date_to, datetime):
            q = q.filter(models.BankTransaction.data_transacao <= end)
        else:
            q = q.filter(models.BankTransaction.data_transacao < end)
    return q.order_by(
        models.BankTransaction.data_transacao.desc(), models.BankTransaction.id.desc()
    ).all()
