from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app import models
from app.services.audit import audit_event
from app.services.errors import CommissionNotFound
from app.services.ledger import utc_now

logger = logging.getLogger("agencia.sale_commissions")


def list_sale_commissions(
    *,
    db: Session,
    venda_id: int | None = None,
    user_id: int | None = None,
) -> list[models.SaleCommission]:
    q = db.query(models.SaleCommission)
    if venda_id is not None:
        q = q.filter(models.SaleCommission.venda_id == int(venda_id))
    if user_id is not None:
        q = q.filter(models.SaleCommission.user_id == int(user_id))
    return q.order_by(models.SaleCommission.created_at.desc(), models.SaleCommission.id.desc()).all()


def mark_commission_received(
    *, db: Session, commission_id: int, actor_user_id: int | None = None
) -> models.SaleCommission:
    commission = db.get(models.SaleCommission, int(commission_id))
    if commission is None:
        raise CommissionNotFound(int(commission_id))

    if commission.status != models.CommissionStatus.recebida:
        now = utc_now()
        commission.status = models.CommissionStatus.recebida
        commission.data_recebimento = now
        commission.updated_at = now
        db.add(commission)
        db.commit()
        db.refresh(commission)

        logger.info("sale_commission_received", extra={"sale_commission_id": commission.id})
        audit_event(
            "sale_commission.received",
            actor_user_id,
            {"sale_commission_id": commission.id, "sale_id": commission.venda_id},
            db=db,
        )
    return commission
