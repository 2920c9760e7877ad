from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app import models
from app.api.deps import get_current_user, idempotency_key, request_id, require_roles
from app.database import get_db
from app.schemas import (
    AccountBalanceRead,
    BankAccountCreate,
    BankAccountRead,
    BankAccountUpdate,
    BankTransactionRead,
    TransferCreate,
    TransferRead,
    UpdatedBalancesRead,
)
from app.services import bank_accounts as bank_account_service
from app.services.errors import LedgerError
from app.services.ledger import list_transactions
from app.services.transfers import transfer

router = APIRouter(prefix="/bank-accounts", tags=["bank-accounts"])

_DB_DEP = Depends(get_db)
_AUTH_DEP = Depends(get_current_user)
_TRANSFER_DEP = Depends(require_roles(models.RoleName.supervisor))


@router.post(
    "/transfer",
    response_model=TransferRead,
    responses={422: {"description": "Business rule rejected the transfer"}},
)
def transfer_between_accounts(
    payload: TransferCreate,
    request: Request,
    db: Session = _DB_DEP,
    current_user: models.User = _TRANSFER_DEP,
):
    # Unknown accounts are a rule failure here (422), not a missing resource.
    try:
        result = transfer(
            db=db,
            conta_origem_id=payload.conta_origem_id,
            conta_destino_id=payload.conta_destino_id,
            valor=payload.valor,
            descricao=payload.descricao,
            observacoes=payload.observacoes,
            idempotency_key=idempotency_key(request),
            actor_user_id=current_user.id,
            request_id=request_id(request),
        )
    except LedgerError as exc:
        request.app.state.logger.info(
            "bank_transfer_rejected",
            extra={"code": exc.code, "field": exc.field, "user_id": current_user.id},
        )
        return JSONResponse(status_code=422, content=exc.as_detail())

    return TransferRead(
        transacao_saida=BankTransactionRead.model_validate(result.transacao_saida),
        transacao_entrada=BankTransactionRead.model_validate(result.transacao_entrada),
        saldos_atualizados=UpdatedBalancesRead(
            conta_origem=AccountBalanceRead.model_validate(result.conta_origem),
            conta_destino=AccountBalanceRead.model_validate(result.conta_destino),
        ),
    )


@router.get("", response_model=List[BankAccountRead], dependencies=[_AUTH_DEP])
def list_bank_accounts(db: Session = _DB_DEP):
    return bank_account_service.list_bank_accounts(db=db)


@router.post("", response_model=BankAccountRead, status_code=status.HTTP_201_CREATED)
def create_bank_account(
    payload: BankAccountCreate,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return bank_account_service.create_bank_account(
        db=db,
        nome=payload.nome,
        banco=payload.banco,
        agencia=payload.agencia,
        conta=payload.conta,
        saldo=payload.saldo,
        ativo=payload.ativo,
        actor_user_id=current_user.id,
    )


@router.get("/{account_id}", response_model=BankAccountRead, dependencies=[_AUTH_DEP])
def get_bank_account(account_id: int, db: Session = _DB_DEP):
    return bank_account_service.get_bank_account(db=db, account_id=account_id)


@router.put("/{account_id}", response_model=BankAccountRead)
def update_bank_account(
    account_id: int,
    payload: BankAccountUpdate,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return bank_account_service.update_bank_account(
        db=db,
        account_id=account_id,
        changes={k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None},
        actor_user_id=current_user.id,
    )


@router.delete("/{account_id}", response_model=BankAccountRead)
def deactivate_bank_account(
    account_id: int,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return bank_account_service.deactivate_bank_account(
        db=db, account_id=account_id, actor_user_id=current_user.id
    )


@router.get(
    "/{account_id}/transactions",
    response_model=List[BankTransactionRead],
    dependencies=[_AUTH_DEP],
)
def list_bank_account_transactions(
    account_id: int,
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    db: Session = _DB_DEP,
):
    bank_account_service.get_bank_account(db=db, account_id=account_id)
    return list_transactions(
        db, conta_bancaria_id=account_id, date_from=date_from, date_to=date_to
    )
