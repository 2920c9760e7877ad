from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app import models
from app.api.deps import get_current_user
from app.database import get_db
from app.schemas import AccountCategoryCreate, AccountCategoryRead, AccountCategoryUpdate
from app.services import account_categories as category_service

router = APIRouter(prefix="/account-categories", tags=["account-categories"])

_DB_DEP = Depends(get_db)
_AUTH_DEP = Depends(get_current_user)


@router.get("", response_model=List[AccountCategoryRead], dependencies=[_AUTH_DEP])
def list_categories(
    tipo: Optional[models.AccountCategoryType] = Query(None),
    db: Session = _DB_DEP,
):
    return category_service.list_account_categories(db=db, tipo=tipo)


@router.post("", response_model=AccountCategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: AccountCategoryCreate,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return category_service.create_account_category(
        db=db,
        nome=payload.nome,
        tipo=payload.tipo,
        ativo=payload.ativo,
        actor_user_id=current_user.id,
    )


@router.put("/{category_id}", response_model=AccountCategoryRead)
def update_category(
    category_id: int,
    payload: AccountCategoryUpdate,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return category_service.update_account_category(
        db=db,
        category_id=category_id,
        changes=payload.model_dump(exclude_unset=True),
        actor_user_id=current_user.id,
    )


@router.delete("/{category_id}", response_model=AccountCategoryRead)
def deactivate_category(
    category_id: int,
    db: Session = _DB_DEP,
    current_user: models.User = _AUTH_DEP,
):
    return category_service.deactivate_account_category(
        db=db, category_id=category_id, actor_user_id=current_user.id
    )
