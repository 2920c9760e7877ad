from typing import Optional

from sqlalchemy.orm import Session

from app import models
from app.core.security import hash_password, verify_password


def authenticate_user(db: Session, email: str, password: str) -> Optional[models.User]:
    user = db.query(models.User).filter(models.User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


def ensure_role(db: Session, role_name: models.RoleName) -> models.Role:
    role = db.query(models.Role).filter(models.Role.name == role_name).first()
    if role is None:
        role = models.Role(name=role_name, description=role_name.value)
        db.add(role)
        db.flush()
    return role


def create_user(
    db: Session,
    *,
    email: str,
    name: str,
    password: str,
    role_name: models.RoleName,
    active: bool = True,
) -> models.User:
    role = ensure_role(db, role_name)
    user = models.User(
        email=email,
        name=name,
        hashed_password=hash_password(password),
        role_id=role.id,
        active=active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
