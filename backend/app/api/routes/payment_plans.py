from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app import models
from app.api.deps import require_roles
from app.database import get_db
from app.schemas import (
    FinancialAccountRead,
    PaymentPlanCreate,
    PaymentPlanLiquidate,
    PaymentPlanLiquidationRead,
    PaymentPlanRead,
    PaymentPlanUpdate,
    SaleCommissionRead,
)
from app.services import sale_ledger_bridge as bridge

router = APIRouter(prefix="/payment-plans", tags=["payment-plans"])

_DB_DEP = Depends(get_db)
_ANY_ROLE_DEP = Depends(
    require_roles(models.RoleName.supervisor, models.RoleName.vendedor)
)


@router.get("", response_model=List[PaymentPlanRead], dependencies=[_ANY_ROLE_DEP])
def list_payment_plans(
    venda_id: Optional[int] = Query(None, alias="vendaId"),
    db: Session = _DB_DEP,
):
    return bridge.list_payment_plans(db=db, venda_id=venda_id)


@router.post("", response_model=PaymentPlanRead, status_code=status.HTTP_201_CREATED)
def create_payment_plan(
    payload: PaymentPlanCreate,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    return bridge.create_payment_plan(db=db, actor_user_id=current_user.id, **payload.model_dump())


@router.put("/{plan_id}", response_model=PaymentPlanRead)
def update_payment_plan(
    plan_id: int,
    payload: PaymentPlanUpdate,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    return bridge.update_payment_plan(
        db=db,
        plan_id=plan_id,
        changes=payload.model_dump(exclude_unset=True),
        actor_user_id=current_user.id,
    )


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_plan(
    plan_id: int,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    bridge.delete_payment_plan(db=db, plan_id=plan_id, actor_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{plan_id}/liquidate", response_model=PaymentPlanLiquidationRead)
def liquidate_payment_plan(
    plan_id: int,
    payload: PaymentPlanLiquidate,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    result = bridge.liquidate_payment_plan(
        db=db,
        plan_id=plan_id,
        data_liquidacao=payload.data_liquidacao,
        observacoes=payload.observacoes,
        actor_user_id=current_user.id,
    )
    return PaymentPlanLiquidationRead(
        plano=PaymentPlanRead.model_validate(result.plano),
        conta_financeira=(
            FinancialAccountRead.model_validate(result.conta_financeira)
            if result.conta_financeira is not None
            else None
        ),
        comissao=(
            SaleCommissionRead.model_validate(result.comissao)
            if result.comissao is not None
            else None
        ),
    )
