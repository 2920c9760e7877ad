"""Financial account tracker: receivables/payables and their liquidation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app import models
from app.config import settings
from app.database import supports_row_locks
from app.services.audit import audit_event
from app.services.errors import (
    CategoryNotFound,
    ClientNotFound,
    FinancialAccountNotFound,
    InvalidAmount,
    OverpaymentRejected,
    SaleNotFound,
    SupplierNotFound,
)
from app.services.ledger import (
    day_end,
    day_start,
    ensure_same_operation,
    find_by_idempotency_key,
    lock_bank_account,
    post_entry,
    quantize_money,
    require_positive_amount,
    utc_now,
)

logger = logging.getLogger("agencia.financial_accounts")

# Largest value the Numeric(10, 2) amount columns hold.
MAX_AMOUNT = Decimal("99999999.99")

_MONTHS_PT = (
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
)


def derive_status(valor_liquidado: Decimal, valor_aberto: Decimal) -> models.PaymentStatus:
    if valor_aberto <= 0:
        return models.PaymentStatus.liquidado
    if valor_liquidado > 0:
        return models.PaymentStatus.parcial
    return models.PaymentStatus.pendente


def require_references(
    db: Session,
    *,
    venda_id: int | None = None,
    categoria_id: int | None = None,
    cliente_id: int | None = None,
    fornecedor_id: int | None = None,
) -> None:
    """Raise a not-found error for any referenced row that does not exist."""

    if venda_id is not None and db.get(models.Sale, int(venda_id)) is None:
        raise SaleNotFound(int(venda_id))
    if categoria_id is not None and db.get(models.AccountCategory, int(categoria_id)) is None:
        raise CategoryNotFound(int(categoria_id))
    if cliente_id is not None and db.get(models.Client, int(cliente_id)) is None:
        raise ClientNotFound(int(cliente_id))
    if fornecedor_id is not None and db.get(models.Supplier, int(fornecedor_id)) is None:
        raise SupplierNotFound(int(fornecedor_id))


def create_financial_account(
    *,
    db: Session,
    descricao: str,
    tipo: models.FinancialAccountType,
    valor_total,
    data_vencimento: datetime | None = None,
    venda_id: int | None = None,
    plano_pagamento_id: int | None = None,
    categoria_id: int | None = None,
    cliente_id: int | None = None,
    fornecedor_id: int | None = None,
    observacoes: str | None = None,
    commit: bool = True,
    actor_user_id: int | None = None,
) -> models.FinancialAccount:
    total = quantize_money(valor_total)
    if abs(total) > MAX_AMOUNT:
        raise InvalidAmount("Valor excede o limite permitido", field="valorTotal")
    require_references(
        db,
        venda_id=venda_id,
        categoria_id=categoria_id,
        cliente_id=cliente_id,
        fornecedor_id=fornecedor_id,
    )
    account = models.FinancialAccount(
        descricao=descricao,
        tipo=tipo,
        valor_total=total,
        valor_liquidado=Decimal("0.00"),
        valor_aberto=total,
        data_vencimento=data_vencimento,
        status=models.PaymentStatus.pendente,
        venda_id=venda_id,
        plano_pagamento_id=plano_pagamento_id,
        categoria_id=categoria_id,
        cliente_id=cliente_id,
        fornecedor_id=fornecedor_id,
        observacoes=observacoes,
    )
    db.add(account)
    if not commit:
        db.flush()
        return account

    db.commit()
    db.refresh(account)
    logger.info(
        "financial_account_created",
        extra={"financial_account_id": account.id, "tipo": tipo.value, "valor_total": str(total)},
    )
    audit_event(
        "financial_account.created",
        actor_user_id,
        {"financial_account_id": account.id, "tipo": tipo.value, "valor_total": str(total)},
        db=db,
    )
    return account


def list_financial_accounts(
    *,
    db: Session,
    tipo: models.FinancialAccountType | None = None,
    status: models.PaymentStatus | None = None,
    search: str | None = None,
) -> list[models.FinancialAccount]:
    q = db.query(models.FinancialAccount)
    if tipo is not None:
        q = q.filter(models.FinancialAccount.tipo == tipo)
    if status is not None:
        q = q.filter(models.FinancialAccount.status == status)
    if search:
        q = q.filter(models.FinancialAccount.descricao.ilike(f"%{search.strip()}%"))
    return q.order_by(
        models.FinancialAccount.created_at.desc(), models.FinancialAccount.id.desc()
    ).all()


def get_financial_account(*, db: Session, account_id: int) -> models.FinancialAccount:
    account = db.get(models.FinancialAccount, int(account_id))
    if account is None:
        raise FinancialAccountNotFound(int(account_id))
    return account


def lock_financial_account(db: Session, account_id: int) -> models.FinancialAccount:
    stmt = select(models.FinancialAccount).where(models.FinancialAccount.id == int(account_id))
    if supports_row_locks(db):
        stmt = stmt.with_for_update(of=models.FinancialAccount)
    account = db.execute(stmt.execution_options(populate_existing=True)).unique().scalars().first()
    if account is None:
        raise FinancialAccountNotFound(int(account_id))
    return account


@dataclass(frozen=True)
class LiquidationResult:
    conta_financeira: models.FinancialAccount
    transacao: models.BankTransaction
    replayed: bool = False


def liquidate_financial_account(
    *,
    db: Session,
    account_id: int,
    valor,
    conta_bancaria_id: int,
    data_liquidacao: datetime | None = None,
    categoria_id: int | None = None,
    anexos: list[str] | None = None,
    idempotency_key: str | None = None,
    actor_user_id: int | None = None,
    request_id: str | None = None,
) -> LiquidationResult:
    """Settle part or all of a financial account against a bank account.

    The obligation update and the ledger entry commit together or not at all.
    Lock order is financial account first, then bank account.
    """

    ledger_key = f"liquidation:{str(idempotency_key).strip()}" if idempotency_key else None

    try:
        account = lock_financial_account(db, account_id)
        amount = require_positive_amount(valor, limit=MAX_AMOUNT)
        bank_account = lock_bank_account(db, conta_bancaria_id, field="contaBancariaId")

        tipo = (
            models.TransactionDirection.entrada
            if account.tipo == models.FinancialAccountType.receber
            else models.TransactionDirection.saida
        )

        previous = find_by_idempotency_key(db, ledger_key)
        if previous is not None:
            ensure_same_operation(
                previous,
                conta_bancaria_id=bank_account.id,
                valor=amount,
                tipo=tipo,
                conta_financeira_id=account.id,
            )
            logger.info(
                "financial_account_liquidation_replayed",
                extra={"financial_account_id": account.id, "bank_transaction_id": previous.id},
            )
            db.rollback()
            return LiquidationResult(conta_financeira=account, transacao=previous, replayed=True)

        require_references(db, categoria_id=categoria_id)

        total = quantize_money(account.valor_total)
        liquidado = quantize_money(account.valor_liquidado or 0)
        aberto_atual = total - liquidado

        novo_liquidado = liquidado + amount
        novo_aberto = total - novo_liquidado
        if novo_liquidado > MAX_AMOUNT or abs(novo_aberto) > MAX_AMOUNT:
            raise InvalidAmount("Valor liquidado excede o limite da conta financeira")
        if novo_aberto < 0:
            if not settings.allow_overpayment:
                raise OverpaymentRejected(
                    account_id=account.id, open_amount=aberto_atual, amount=amount
                )
            logger.warning(
                "financial_account_overpaid",
                extra={
                    "financial_account_id": account.id,
                    "valor_total": str(total),
                    "valor_liquidado": str(novo_liquidado),
                    "valor_aberto": str(novo_aberto),
                },
            )

        account.valor_liquidado = novo_liquidado
        account.valor_aberto = novo_aberto
        account.status = derive_status(novo_liquidado, novo_aberto)
        if categoria_id is not None:
            account.categoria_id = categoria_id
        account.updated_at = utc_now()
        db.add(account)

        txn = post_entry(
            db,
            account=bank_account,
            descricao=account.descricao,
            valor=amount,
            tipo=tipo,
            data_transacao=data_liquidacao or utc_now(),
            conta_financeira_id=account.id,
            anexos=anexos,
            conciliado=True,
            idempotency_key=ledger_key,
        )

        audit_event(
            "financial_account.liquidated",
            actor_user_id,
            {
                "financial_account_id": account.id,
                "bank_transaction_id": txn.id,
                "conta_bancaria_id": bank_account.id,
                "valor": str(amount),
                "status": account.status.value,
            },
            db=db,
            request_id=request_id,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(account)
    db.refresh(txn)
    logger.info(
        "financial_account_liquidated",
        extra={
            "financial_account_id": account.id,
            "bank_transaction_id": txn.id,
            "valor": str(amount),
            "status": account.status.value,
            "valor_aberto": str(account.valor_aberto),
        },
    )
    return LiquidationResult(conta_financeira=account, transacao=txn)


def _format_periodo(date_from: date | None, date_to: date | None) -> str:
    if date_from is not None and date_to is not None:
        return f"{date_from:%d/%m/%Y} - {date_to:%d/%m/%Y}"
    today = utc_now().date()
    return f"{_MONTHS_PT[today.month - 1]} de {today.year}"


def financial_summary(
    *,
    db: Session,
    date_from: date | None = None,
    date_to: date | None = None,
) -> dict:
    """Revenues and expenses by category over financial accounts created in the window."""

    q = db.query(models.FinancialAccount)
    if date_from is not None:
        q = q.filter(models.FinancialAccount.created_at >= day_start(date_from))
    if date_to is not None:
        q = q.filter(models.FinancialAccount.created_at < day_end(date_to))

    receitas: dict[str, Decimal] = {}
    despesas: dict[str, Decimal] = {}
    for account in q.all():
        category = account.category
        nome = category.nome if category is not None else "Sem Categoria"
        valor = quantize_money(account.valor_total or 0)
        category_tipo = category.tipo if category is not None else None

        if (
            account.tipo == models.FinancialAccountType.receber
            or category_tipo == models.AccountCategoryType.receita
        ):
            receitas[nome] = receitas.get(nome, Decimal("0.00")) + valor
        elif (
            account.tipo == models.FinancialAccountType.pagar
            or category_tipo == models.AccountCategoryType.despesa
        ):
            despesas[nome] = despesas.get(nome, Decimal("0.00")) + valor

    total_receitas = sum(receitas.values(), Decimal("0.00"))
    total_despesas = sum(despesas.values(), Decimal("0.00"))
    return {
        "periodo": _format_periodo(date_from, date_to),
        "receitas": [{"categoria": k, "valor": v} for k, v in receitas.items()],
        "despesas": [{"categoria": k, "valor": v} for k, v in despesas.items()],
        "total_receitas": total_receitas,
        "total_despesas": total_despesas,
        "lucro_liquido": total_receitas - total_despesas,
    }
