from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app import models
from app.api.deps import get_current_user, idempotency_key, request_id
from app.database import get_db
from app.schemas import (
    BankTransactionRead,
    FinancialAccountCreate,
    FinancialAccountLiquidate,
    FinancialAccountRead,
    FinancialSummaryRead,
    LiquidationRead,
)
from app.services import financial_accounts as fa_service

router = APIRouter(tags=["financial-accounts"])

_DB_DEP = Depends(get_db)
_AUTH_DEP = Depends(get_current_user)


@router.get(
    "/financial-accounts",
    response_model=List[FinancialAccountRead],
    dependencies=[_AUTH_DEP],
)
def list_financial_accounts(
    tipo: Optional[models.FinancialAccountType] = Query(None),
    status_filter: Optional[models.PaymentStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    db: Session = _DB_DEP,
):
    return fa_service.list_financial_accounts(db=db, tipo=tipo, status=status_filter, search=search)


@router.post(
    "/financial-accounts",
    response_model=FinancialAccountRead,
    status_code=status.HTTP_201_CREATED,
)
def create_financial_account(
    payload: FinancialAccountCreate,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return fa_service.create_financial_account(
        db=db, actor_user_id=current_user.id, **payload.model_dump()
    )


@router.get(
    "/financial-accounts/{account_id}",
    response_model=FinancialAccountRead,
    dependencies=[_AUTH_DEP],
)
def get_financial_account(account_id: int, db: Session = _DB_DEP):
    return fa_service.get_financial_account(db=db, account_id=account_id)


@router.put("/financial-accounts/{account_id}/liquidate", response_model=LiquidationRead)
def liquidate_financial_account(
    account_id: int,
    payload: FinancialAccountLiquidate,
    request: Request,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    result = fa_service.liquidate_financial_account(
        db=db,
        account_id=account_id,
        valor=payload.valor,
        conta_bancaria_id=payload.conta_bancaria_id,
        data_liquidacao=payload.data_liquidacao,
        categoria_id=payload.categoria_id,
        anexos=payload.anexos,
        idempotency_key=idempotency_key(request),
        actor_user_id=current_user.id,
        request_id=request_id(request),
    )
    return LiquidationRead(
        conta_financeira=FinancialAccountRead.model_validate(result.conta_financeira),
        transacao=BankTransactionRead.model_validate(result.transacao),
    )


@router.get(
    "/financial-summary",
    response_model=FinancialSummaryRead,
    dependencies=[_AUTH_DEP],
)
def financial_summary(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    db: Session = _DB_DEP,
):
    return fa_service.financial_summary(db=db, date_from=date_from, date_to=date_to)
