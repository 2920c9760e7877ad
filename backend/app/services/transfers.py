"""Transfer orchestrator.

Moves money between two bank accounts as one atomic unit: an outgoing
`saida` leg on the source and an incoming `entrada` leg on the destination,
both posted through the ledger while holding both row locks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from app import models
from app.services.audit import audit_event
from app.services.errors import (
    AccountNotFound,
    IdempotencyKeyConflict,
    InsufficientFunds,
    SameAccount,
)
from app.services.ledger import (
    ensure_same_operation,
    find_by_idempotency_key,
    lock_bank_accounts,
    post_entry,
    quantize_money,
    require_positive_amount,
    utc_now,
)

logger = logging.getLogger("agencia.transfers")


@dataclass(frozen=True)
class AccountBalance:
    id: int
    nome: str
    saldo: Decimal


@dataclass(frozen=True)
class TransferResult:
    transacao_saida: models.BankTransaction
    transacao_entrada: models.BankTransaction
    conta_origem: AccountBalance
    conta_destino: AccountBalance
    replayed: bool = False


def _leg_keys(idempotency_key: str | None) -> tuple[str | None, str | None]:
    if not idempotency_key:
        return None, None
    key = str(idempotency_key).strip()
    return f"transfer:{key}:saida", f"transfer:{key}:entrada"


def _replayed_result(
    db: Session,
    out_txn: models.BankTransaction,
    in_txn: models.BankTransaction,
) -> TransferResult:
    source = db.get(models.BankAccount, out_txn.conta_bancaria_id)
    dest = db.get(models.BankAccount, in_txn.conta_bancaria_id)
    return TransferResult(
        transacao_saida=out_txn,
        transacao_entrada=in_txn,
        conta_origem=AccountBalance(id=source.id, nome=source.nome, saldo=quantize_money(source.saldo)),
        conta_destino=AccountBalance(id=dest.id, nome=dest.nome, saldo=quantize_money(dest.saldo)),
        replayed=True,
    )


def transfer(
    *,
    db: Session,
    conta_origem_id: int,
    conta_destino_id: int,
    valor,
    descricao: str,
    observacoes: str | None = None,
    idempotency_key: str | None = None,
    actor_user_id: int | None = None,
    request_id: str | None = None,
) -> TransferResult:
    # Validation order is part of the contract: the first failing rule wins.
    amount = require_positive_amount(valor)
    source_id = int(conta_origem_id)
    dest_id = int(conta_destino_id)
    if source_id == dest_id:
        raise SameAccount()

    out_key, in_key = _leg_keys(idempotency_key)

    try:
        locked = lock_bank_accounts(db, (source_id, dest_id))
        source = locked.get(source_id)
        dest = locked.get(dest_id)
        if source is None:
            raise AccountNotFound(source_id, field="contaOrigemId")
        if dest is None:
            raise AccountNotFound(dest_id, field="contaDestinoId")

        if out_key:
            previous_out = find_by_idempotency_key(db, out_key)
            previous_in = find_by_idempotency_key(db, in_key)
            if previous_out is not None or previous_in is not None:
                if previous_out is None or previous_in is None:
                    raise IdempotencyKeyConflict(str(idempotency_key))
                ensure_same_operation(
                    previous_out,
                    conta_bancaria_id=source_id,
                    valor=amount,
                    tipo=models.TransactionDirection.saida,
                )
                ensure_same_operation(
                    previous_in,
                    conta_bancaria_id=dest_id,
                    valor=amount,
                    tipo=models.TransactionDirection.entrada,
                )
                logger.info(
                    "bank_transfer_replayed",
                    extra={"idempotency_key": idempotency_key, "saida_id": previous_out.id},
                )
                result = _replayed_result(db, previous_out, previous_in)
                db.rollback()
                return result

        # Balance re-read under lock; any earlier read may be stale.
        source_balance = quantize_money(source.saldo or 0)
        if source_balance < amount:
            raise InsufficientFunds(account_id=source_id, balance=source_balance, amount=amount)

        data_transacao = utc_now()

        transacao_saida = post_entry(
            db,
            account=source,
            descricao=f"Transfer to {dest.nome}: {descricao}",
            valor=amount,
            tipo=models.TransactionDirection.saida,
            data_transacao=data_transacao,
            observacoes=observacoes,
            idempotency_key=out_key,
        )
        transacao_entrada = post_entry(
            db,
            account=dest,
            descricao=f"Transfer received from {source.nome}: {descricao}",
            valor=amount,
            tipo=models.TransactionDirection.entrada,
            data_transacao=data_transacao,
            observacoes=observacoes,
            idempotency_key=in_key,
        )

        audit_event(
            "bank_transfer.completed",
            actor_user_id,
            {
                "conta_origem_id": source_id,
                "conta_destino_id": dest_id,
                "valor": str(amount),
                "transacao_saida_id": transacao_saida.id,
                "transacao_entrada_id": transacao_entrada.id,
            },
            db=db,
            request_id=request_id,
            commit=False,
        )

        result = TransferResult(
            transacao_saida=transacao_saida,
            transacao_entrada=transacao_entrada,
            conta_origem=AccountBalance(id=source.id, nome=source.nome, saldo=transacao_saida.saldo_novo),
            conta_destino=AccountBalance(id=dest.id, nome=dest.nome, saldo=transacao_entrada.saldo_novo),
        )
        db.commit()
    except InsufficientFunds as exc:
        db.rollback()
        logger.info(
            "bank_transfer_rejected",
            extra={
                "reason": exc.code,
                "conta_origem_id": source_id,
                "conta_destino_id": dest_id,
                "valor": str(amount),
            },
        )
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(result.transacao_saida)
    db.refresh(result.transacao_entrada)

    logger.info(
        "bank_transfer_completed",
        extra={
            "conta_origem_id": source_id,
            "conta_destino_id": dest_id,
            "valor": str(amount),
            "saldo_origem": str(result.conta_origem.saldo),
            "saldo_destino": str(result.conta_destino.saldo),
        },
    )
    return result
