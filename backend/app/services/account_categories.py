from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from app import models
from app.services.audit import audit_event
from app.services.errors import CategoryNotFound

_EDITABLE_FIELDS = ("nome", "tipo", "ativo")


def list_account_categories(
    *, db: Session, tipo: models.AccountCategoryType | None = None
) -> list[models.AccountCategory]:
    q = db.query(models.AccountCategory).filter(models.AccountCategory.ativo.is_(True))
    if tipo is not None:
        q = q.filter(models.AccountCategory.tipo == tipo)
    return q.order_by(models.AccountCategory.nome.asc()).all()


def create_account_category(
    *,
    db: Session,
    nome: str,
    tipo: models.AccountCategoryType,
    ativo: bool = True,
    actor_user_id: int | None = None,
) -> models.AccountCategory:
    category = models.AccountCategory(nome=nome, tipo=tipo, ativo=bool(ativo))
    db.add(category)
    db.commit()
    db.refresh(category)
    audit_event(
        "account_category.created",
        actor_user_id,
        {"account_category_id": category.id, "nome": nome, "tipo": tipo.value},
        db=db,
    )
    return category


def get_account_category(*, db: Session, category_id: int) -> models.AccountCategory:
    category = db.get(models.AccountCategory, int(category_id))
    if category is None:
        raise CategoryNotFound(int(category_id), field="id")
    return category


def update_account_category(
    *,
    db: Session,
    category_id: int,
    changes: dict[str, Any],
    actor_user_id: int | None = None,
) -> models.AccountCategory:
    category = get_account_category(db=db, category_id=category_id)

    applied: dict[str, Any] = {}
    for key in _EDITABLE_FIELDS:
        if key in changes and changes[key] is not None:
            setattr(category, key, changes[key])
            applied[key] = changes[key]

    if applied:
        db.add(category)
        db.commit()
        db.refresh(category)
        audit_event(
            "account_category.updated",
            actor_user_id,
            {
                "account_category_id": category.id,
                "changes": {k: getattr(v, "value", v) for k, v in applied.items()},
            },
            db=db,
        )
    return category


def deactivate_account_category(
    *, db: Session, category_id: int, actor_user_id: int | None = None
) -> models.AccountCategory:
    """Financial accounts keep pointing at a deactivated category."""

    return update_account_category(
        db=db, category_id=category_id, changes={"ativo": False}, actor_user_id=actor_user_id
    )
