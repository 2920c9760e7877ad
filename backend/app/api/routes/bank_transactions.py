from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app import models
from app.api.deps import idempotency_key, request_id, require_roles
from app.database import get_db
from app.schemas import BankTransactionCreate, BankTransactionRead
from app.services.ledger import append_transaction

router = APIRouter(prefix="/bank-transactions", tags=["bank-transactions"])

_DB_DEP = Depends(get_db)
_ADMIN_DEP = Depends(require_roles(models.RoleName.admin))


@router.post("", response_model=BankTransactionRead, status_code=status.HTTP_201_CREATED)
def create_bank_transaction(
    payload: BankTransactionCreate,
    request: Request,
    db: Session = _DB_DEP,
    current_user: models.User = _ADMIN_DEP,
):
    """Manual ledger entry. Bypasses the sufficiency check, hence admin only."""

    return append_transaction(
        db,
        conta_bancaria_id=payload.conta_bancaria_id,
        descricao=payload.descricao,
        valor=payload.valor,
        tipo=payload.tipo,
        data_transacao=payload.data_transacao,
        conta_financeira_id=payload.conta_financeira_id,
        observacoes=payload.observacoes,
        anexos=payload.anexos,
        conciliado=payload.conciliado,
        idempotency_key=idempotency_key(request),
        actor_user_id=current_user.id,
        request_id=request_id(request),
    )
