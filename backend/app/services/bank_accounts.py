from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app import models
from app.services.audit import audit_event
from app.services.errors import AccountNotFound, InvalidAmount
from app.services.ledger import quantize_money, utc_now

logger = logging.getLogger("agencia.bank_accounts")

# saldo is deliberately absent: balances only move through the ledger.
_EDITABLE_FIELDS = ("nome", "banco", "agencia", "conta", "ativo")


def list_bank_accounts(*, db: Session) -> list[models.BankAccount]:
    return (
        db.query(models.BankAccount)
        .filter(models.BankAccount.ativo.is_(True))
        .order_by(models.BankAccount.nome.asc(), models.BankAccount.id.asc())
        .all()
    )


def get_bank_account(*, db: Session, account_id: int) -> models.BankAccount:
    account = db.get(models.BankAccount, int(account_id))
    if account is None:
        raise AccountNotFound(int(account_id))
    return account


def create_bank_account(
    *,
    db: Session,
    nome: str,
    banco: str | None = None,
    agencia: str | None = None,
    conta: str | None = None,
    saldo: Decimal | None = None,
    ativo: bool = True,
    actor_user_id: int | None = None,
) -> models.BankAccount:
    opening = quantize_money(saldo if saldo is not None else 0)
    if opening < 0:
        raise InvalidAmount("Saldo inicial não pode ser negativo", field="saldo")

    account = models.BankAccount(
        nome=nome,
        banco=banco,
        agencia=agencia,
        conta=conta,
        saldo=opening,
        ativo=bool(ativo),
    )
    db.add(account)
    db.commit()
    db.refresh(account)

    logger.info(
        "bank_account_created",
        extra={"bank_account_id": account.id, "saldo_inicial": str(opening)},
    )
    audit_event(
        "bank_account.created",
        actor_user_id,
        {"bank_account_id": account.id, "nome": account.nome, "saldo_inicial": str(opening)},
        db=db,
    )
    return account


def update_bank_account(
    *,
    db: Session,
    account_id: int,
    changes: dict[str, Any],
    actor_user_id: int | None = None,
) -> models.BankAccount:
    account = get_bank_account(db=db, account_id=account_id)

    applied: dict[str, Any] = {}
    for key in _EDITABLE_FIELDS:
        if key in changes:
            setattr(account, key, changes[key])
            applied[key] = changes[key]

    if applied:
        account.updated_at = utc_now()
        db.add(account)
        db.commit()
        db.refresh(account)
        audit_event(
            "bank_account.updated",
            actor_user_id,
            {"bank_account_id": account.id, "changes": applied},
            db=db,
        )
    return account


def deactivate_bank_account(
    *, db: Session, account_id: int, actor_user_id: int | None = None
) -> models.BankAccount:
    """Accounts are never deleted; their ledger history must stay reachable."""

    return update_bank_account(
        db=db,
        account_id=account_id,
        changes={"ativo": False},
        actor_user_id=actor_user_id,
    )
