"""Sale-to-ledger bridge.

Turns sale confirmation and payment-plan lifecycle events into financial
accounts (and supplier commissions). Nothing here touches a bank balance:
money only moves later, when one of the created financial accounts is
liquidated.

Each payment plan owns at most one "shadow" financial account, linked through
`FinancialAccount.plano_pagamento_id`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app import models
from app.config import settings
from app.database import supports_row_locks
from app.services.audit import audit_event
from app.services.errors import (
    FinancialAccountLocked,
    PaymentPlanAlreadyLiquidated,
    PaymentPlanNotFound,
    SaleNotFound,
)
from app.services.financial_accounts import (
    MAX_AMOUNT,
    create_financial_account,
    derive_status,
    lock_financial_account,
)
from app.services.ledger import quantize_money, require_positive_amount, utc_now

logger = logging.getLogger("agencia.sale_ledger_bridge")

_PLAN_FIELDS = (
    "descricao",
    "valor",
    "data_vencimento",
    "data_previsao_pagamento",
    "forma_pagamento_id",
    "condicao_pagamento_id",
    "quem_recebe",
    "cliente_pagante_id",
    "conta_bancaria_id",
    "observacoes",
)


def _shadow_description(descricao: str) -> str:
    return f"Plano de pagamento: {descricao}"


def _lock_sale(db: Session, sale_id: int) -> models.Sale:
    stmt = select(models.Sale).where(models.Sale.id == int(sale_id))
    if supports_row_locks(db):
        stmt = stmt.with_for_update(of=models.Sale)
    sale = db.execute(stmt.execution_options(populate_existing=True)).unique().scalars().first()
    if sale is None:
        raise SaleNotFound(int(sale_id))
    return sale


def _get_sale(db: Session, sale_id: int) -> models.Sale:
    sale = db.get(models.Sale, int(sale_id))
    if sale is None:
        raise SaleNotFound(int(sale_id))
    return sale


def create_financial_accounts_for_sale(
    db: Session, sale: models.Sale
) -> list[models.FinancialAccount]:
    """Receivable for the client, payable for supplier cost, one payable per seller commission."""

    created: list[models.FinancialAccount] = []
    ref = sale.referencia

    created.append(
        create_financial_account(
            db=db,
            descricao=f"Recebimento Cliente - Venda {ref}",
            tipo=models.FinancialAccountType.receber,
            valor_total=sale.valor_total or 0,
            venda_id=sale.id,
            cliente_id=sale.cliente_id,
            commit=False,
        )
    )

    if quantize_money(sale.custo_total or 0) > 0:
        created.append(
            create_financial_account(
                db=db,
                descricao=f"Repasse Fornecedores - Venda {ref}",
                tipo=models.FinancialAccountType.pagar,
                valor_total=sale.custo_total,
                venda_id=sale.id,
                fornecedor_id=sale.fornecedor_id,
                commit=False,
            )
        )

    sale_sellers = (
        db.query(models.SaleSeller)
        .filter(models.SaleSeller.venda_id == sale.id)
        .order_by(models.SaleSeller.id.asc())
        .all()
    )
    for link in sale_sellers:
        if quantize_money(link.valor_comissao or 0) <= 0:
            continue
        seller_name = link.seller.nome if link.seller is not None else ""
        created.append(
            create_financial_account(
                db=db,
                descricao=f"Comissão {seller_name} - Venda {ref}",
                tipo=models.FinancialAccountType.pagar,
                valor_total=link.valor_comissao,
                venda_id=sale.id,
                commit=False,
            )
        )
    return created


def update_sale_status(
    *,
    db: Session,
    sale_id: int,
    status: models.SaleStatus,
    actor_user_id: int | None = None,
) -> models.Sale:
    """Move a sale to `status`; entering `venda` books its financial accounts once."""

    try:
        sale = _lock_sale(db, sale_id)
        previous = sale.status

        sale.status = status
        sale.data_venda = utc_now() if status == models.SaleStatus.venda else None
        sale.updated_at = utc_now()
        db.add(sale)

        created: list[models.FinancialAccount] = []
        if status == models.SaleStatus.venda and previous != models.SaleStatus.venda:
            created = create_financial_accounts_for_sale(db, sale)

        audit_event(
            "sale.status_changed",
            actor_user_id,
            {
                "sale_id": sale.id,
                "from": previous.value if previous is not None else None,
                "to": status.value,
                "financial_account_ids": [fa.id for fa in created],
            },
            db=db,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(sale)
    logger.info(
        "sale_status_changed",
        extra={
            "sale_id": sale.id,
            "status": status.value,
            "financial_accounts_created": len(created),
        },
    )
    return sale


# Payment plans


def list_payment_plans(*, db: Session, venda_id: int | None = None) -> list[models.PaymentPlan]:
    q = db.query(models.PaymentPlan)
    if venda_id is not None:
        q = q.filter(models.PaymentPlan.venda_id == int(venda_id))
    return q.order_by(models.PaymentPlan.data_vencimento.asc(), models.PaymentPlan.id.asc()).all()


def get_payment_plan(*, db: Session, plan_id: int) -> models.PaymentPlan:
    plan = db.get(models.PaymentPlan, int(plan_id))
    if plan is None:
        raise PaymentPlanNotFound(int(plan_id))
    return plan


def _shadow_of(db: Session, plan: models.PaymentPlan) -> models.FinancialAccount | None:
    shadow_id = (
        db.query(models.FinancialAccount.id)
        .filter(models.FinancialAccount.plano_pagamento_id == plan.id)
        .scalar()
    )
    if shadow_id is None:
        return None
    return lock_financial_account(db, shadow_id)


def _create_shadow(
    db: Session, plan: models.PaymentPlan, sale: models.Sale
) -> models.FinancialAccount | None:
    if plan.quem_recebe == models.Receiver.FORNECEDOR:
        if sale.fornecedor_id is None:
            return None
        return create_financial_account(
            db=db,
            descricao=_shadow_description(plan.descricao),
            tipo=models.FinancialAccountType.pagar,
            valor_total=plan.valor,
            data_vencimento=plan.data_vencimento,
            venda_id=plan.venda_id,
            plano_pagamento_id=plan.id,
            fornecedor_id=sale.fornecedor_id,
            commit=False,
        )
    return create_financial_account(
        db=db,
        descricao=_shadow_description(plan.descricao),
        tipo=models.FinancialAccountType.receber,
        valor_total=plan.valor,
        data_vencimento=plan.data_vencimento,
        venda_id=plan.venda_id,
        plano_pagamento_id=plan.id,
        cliente_id=sale.cliente_id,
        commit=False,
    )


def _patch_shadow(shadow: models.FinancialAccount, plan: models.PaymentPlan) -> None:
    total = quantize_money(plan.valor)
    liquidado = quantize_money(shadow.valor_liquidado or 0)
    shadow.descricao = _shadow_description(plan.descricao)
    shadow.valor_total = total
    shadow.valor_aberto = total - liquidado
    shadow.status = derive_status(liquidado, shadow.valor_aberto)
    shadow.data_vencimento = plan.data_vencimento
    shadow.updated_at = utc_now()


def _drop_shadow(db: Session, shadow: models.FinancialAccount) -> None:
    if quantize_money(shadow.valor_liquidado or 0) > 0:
        raise FinancialAccountLocked(shadow.id)
    db.delete(shadow)
    db.flush()


def _sync_shadow(
    db: Session, plan: models.PaymentPlan, sale: models.Sale
) -> models.FinancialAccount | None:
    """Make the plan's shadow account match the plan, creating it if missing."""

    shadow = _shadow_of(db, plan)
    expected_tipo = (
        models.FinancialAccountType.pagar
        if plan.quem_recebe == models.Receiver.FORNECEDOR
        else models.FinancialAccountType.receber
    )
    if shadow is not None and shadow.tipo != expected_tipo:
        _drop_shadow(db, shadow)
        shadow = None

    if shadow is None:
        return _create_shadow(db, plan, sale)

    _patch_shadow(shadow, plan)
    db.add(shadow)
    db.flush()
    return shadow


def create_payment_plan(
    *,
    db: Session,
    venda_id: int,
    descricao: str,
    valor,
    data_vencimento: datetime,
    quem_recebe: models.Receiver,
    data_previsao_pagamento: datetime | None = None,
    forma_pagamento_id: int | None = None,
    condicao_pagamento_id: int | None = None,
    cliente_pagante_id: int | None = None,
    conta_bancaria_id: int | None = None,
    observacoes: str | None = None,
    actor_user_id: int | None = None,
) -> models.PaymentPlan:
    amount = require_positive_amount(valor, limit=MAX_AMOUNT)

    try:
        sale = _get_sale(db, venda_id)
        plan = models.PaymentPlan(
            venda_id=sale.id,
            descricao=descricao,
            valor=amount,
            data_vencimento=data_vencimento,
            data_previsao_pagamento=data_previsao_pagamento,
            forma_pagamento_id=forma_pagamento_id,
            condicao_pagamento_id=condicao_pagamento_id,
            quem_recebe=quem_recebe,
            cliente_pagante_id=cliente_pagante_id,
            conta_bancaria_id=conta_bancaria_id,
            observacoes=observacoes,
            status=models.PaymentStatus.pendente,
            valor_pago=Decimal("0.00"),
            valor_liquidado=Decimal("0.00"),
            saldo_aberto=amount,
        )
        db.add(plan)
        db.flush()

        shadow = _create_shadow(db, plan, sale)
        audit_event(
            "payment_plan.created",
            actor_user_id,
            {
                "payment_plan_id": plan.id,
                "sale_id": sale.id,
                "valor": str(amount),
                "quem_recebe": quem_recebe.value,
                "financial_account_id": shadow.id if shadow is not None else None,
            },
            db=db,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(plan)
    logger.info(
        "payment_plan_created",
        extra={"payment_plan_id": plan.id, "sale_id": plan.venda_id, "valor": str(amount)},
    )
    return plan


def update_payment_plan(
    *,
    db: Session,
    plan_id: int,
    changes: dict[str, Any],
    actor_user_id: int | None = None,
) -> models.PaymentPlan:
    try:
        plan = get_payment_plan(db=db, plan_id=plan_id)
        sale = _get_sale(db, plan.venda_id)
        receiver_before = plan.quem_recebe
        if plan.status == models.PaymentStatus.liquidado and changes.get("valor") is not None:
            raise PaymentPlanAlreadyLiquidated(plan.id)

        applied: dict[str, Any] = {}
        for key in _PLAN_FIELDS:
            if key in changes and changes[key] is not None:
                value = changes[key]
                if key == "valor":
                    value = require_positive_amount(value, limit=MAX_AMOUNT)
                setattr(plan, key, value)
                applied[key] = value

        if "valor" in applied:
            plan.saldo_aberto = quantize_money(plan.valor) - quantize_money(plan.valor_liquidado or 0)
            plan.status = derive_status(quantize_money(plan.valor_liquidado or 0), plan.saldo_aberto)
        plan.updated_at = utc_now()
        db.add(plan)
        db.flush()

        shadow = _shadow_of(db, plan)
        if plan.quem_recebe != receiver_before:
            if shadow is not None:
                _drop_shadow(db, shadow)
            shadow = _create_shadow(db, plan, sale)
        elif shadow is not None:
            _patch_shadow(shadow, plan)
            db.add(shadow)
        else:
            shadow = _create_shadow(db, plan, sale)

        audit_event(
            "payment_plan.updated",
            actor_user_id,
            {
                "payment_plan_id": plan.id,
                "changes": applied,
                "financial_account_id": shadow.id if shadow is not None else None,
            },
            db=db,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(plan)
    return plan


def delete_payment_plan(
    *, db: Session, plan_id: int, actor_user_id: int | None = None
) -> None:
    try:
        plan = get_payment_plan(db=db, plan_id=plan_id)
        shadow = _shadow_of(db, plan)
        if shadow is not None:
            _drop_shadow(db, shadow)

        audit_event(
            "payment_plan.deleted",
            actor_user_id,
            {"payment_plan_id": plan.id, "sale_id": plan.venda_id},
            db=db,
            commit=False,
        )
        db.delete(plan)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("payment_plan_deleted", extra={"payment_plan_id": int(plan_id)})


@dataclass(frozen=True)
class PaymentPlanLiquidation:
    plano: models.PaymentPlan
    conta_financeira: models.FinancialAccount | None
    comissao: models.SaleCommission | None


def liquidate_payment_plan(
    *,
    db: Session,
    plan_id: int,
    data_liquidacao: datetime,
    observacoes: str | None = None,
    actor_user_id: int | None = None,
) -> PaymentPlanLiquidation:
    try:
        stmt = select(models.PaymentPlan).where(models.PaymentPlan.id == int(plan_id))
        if supports_row_locks(db):
            stmt = stmt.with_for_update(of=models.PaymentPlan)
        plan = db.execute(stmt.execution_options(populate_existing=True)).unique().scalars().first()
        if plan is None:
            raise PaymentPlanNotFound(int(plan_id))
        if plan.status == models.PaymentStatus.liquidado:
            raise PaymentPlanAlreadyLiquidated(plan.id)

        sale = _get_sale(db, plan.venda_id)
        valor = quantize_money(plan.valor)

        plan.status = models.PaymentStatus.liquidado
        plan.data_liquidacao = data_liquidacao
        plan.observacoes = observacoes
        plan.valor_pago = valor
        plan.valor_liquidado = valor
        plan.saldo_aberto = Decimal("0.00")
        plan.updated_at = utc_now()
        db.add(plan)
        db.flush()

        shadow = _sync_shadow(db, plan, sale)

        comissao = None
        if plan.quem_recebe == models.Receiver.FORNECEDOR and sale.fornecedor_id is not None:
            percentual = quantize_money(settings.supplier_commission_percent)
            comissao = models.SaleCommission(
                venda_id=plan.venda_id,
                user_id=None,
                tipo=models.CommissionType.fornecedor,
                percentual=percentual,
                valor_comissao=quantize_money(valor * percentual / Decimal("100")),
                status=models.CommissionStatus.a_receber,
                data_previsao_recebimento=data_liquidacao
                + timedelta(days=settings.commission_receipt_days),
                observacoes=f"Comissão referente ao pagamento: {plan.descricao}",
            )
            db.add(comissao)
            db.flush()

        audit_event(
            "payment_plan.liquidated",
            actor_user_id,
            {
                "payment_plan_id": plan.id,
                "sale_id": plan.venda_id,
                "valor": str(valor),
                "financial_account_id": shadow.id if shadow is not None else None,
                "sale_commission_id": comissao.id if comissao is not None else None,
            },
            db=db,
            commit=False,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(plan)
    if shadow is not None:
        db.refresh(shadow)
    if comissao is not None:
        db.refresh(comissao)
    logger.info(
        "payment_plan_liquidated",
        extra={
            "payment_plan_id": plan.id,
            "financial_account_id": shadow.id if shadow is not None else None,
            "sale_commission_id": comissao.id if comissao is not None else None,
        },
    )
    return PaymentPlanLiquidation(plano=plan, conta_financeira=shadow, comissao=comissao)
