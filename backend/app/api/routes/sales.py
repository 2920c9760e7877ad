from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import models
from app.api.deps import require_roles
from app.database import get_db
from app.schemas import SaleRead, SaleStatusUpdate
from app.services.sale_ledger_bridge import update_sale_status

router = APIRouter(prefix="/sales", tags=["sales"])

_DB_DEP = Depends(get_db)
_ANY_ROLE_DEP = Depends(
    require_roles(models.RoleName.supervisor, models.RoleName.vendedor)
)


@router.put("/{sale_id}/status", response_model=SaleRead)
def change_sale_status(
    sale_id: int,
    payload: SaleStatusUpdate,
    db: Session = _DB_DEP,
    current_user: models.User = _ANY_ROLE_DEP,
):
    return update_sale_status(
        db=db, sale_id=sale_id, status=payload.status, actor_user_id=current_user.id
    )
