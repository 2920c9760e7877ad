from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app import models
from app.api.deps import require_roles
from app.database import get_db
from app.schemas import SaleCommissionRead
from app.services.sale_commissions import list_sale_commissions, mark_commission_received

router = APIRouter(prefix="/sale-commissions", tags=["sale-commissions"])

_DB_DEP = Depends(get_db)
_ANY_ROLE_DEP = Depends(
    require_roles(models.RoleName.supervisor, models.RoleName.vendedor)
)


@router.get("", response_model=List[SaleCommissionRead], dependencies=[_ANY_ROLE_DEP])
def list_commissions(
    venda_id: Optional[int] = Query(None, alias="vendaId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = _DB_DEP,
):
    return list_sale_commissions(db=db, venda_id=venda_id, user_id=user_id)


@router.put("/{commission_id}/receive", response_model=SaleCommissionRead)
def receive_commission(
    commission_id: int,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    return mark_commission_received(
        db=db, commission_id=commission_id, actor_user_id=current_user.id
    )
