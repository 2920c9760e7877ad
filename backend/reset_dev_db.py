#!/usr/bin/env python3
"""
Reset development database - creates fresh schema, users, bank accounts and
account categories. Run from the backend/ directory.
"""
import os
from decimal import Decimal
from pathlib import Path

backend_dir = Path(__file__).parent
os.chdir(backend_dir)

# .env must be loaded before app.config builds its settings.
from dotenv import load_dotenv

load_dotenv(backend_dir / ".env", override=True)

# Always target the local sqlite dev DB for this script.
os.environ["DATABASE_URL"] = "sqlite:///./dev.db"

from app import models  # noqa: E402
from app.core.security import hash_password  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402

DEV_USERS = [
    ("Admin", "admin@agencia.local", models.RoleName.admin),
    ("Supervisor", "supervisor@agencia.local", models.RoleName.supervisor),
    ("Vendedor", "vendedor@agencia.local", models.RoleName.vendedor),
]

DEV_BANK_ACCOUNTS = [
    ("Caixa", None, Decimal("1000.00")),
    ("Banco X", "Banco X S.A.", Decimal("0.00")),
]

DEV_CATEGORIES = [
    ("Vendas de Pacotes", models.AccountCategoryType.receita),
    ("Comissões", models.AccountCategoryType.receita),
    ("Repasse a Fornecedores", models.AccountCategoryType.despesa),
    ("Despesas Administrativas", models.AccountCategoryType.despesa),
]


def main():
    db_path = backend_dir / "dev.db"

    if db_path.exists():
        print(f"Removing existing database: {db_path}")
        db_path.unlink()

    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        for role_name in models.RoleName:
            db.add(models.Role(name=role_name, description=role_name.value))
        db.flush()

        for name, email, role_name in DEV_USERS:
            role = db.query(models.Role).filter(models.Role.name == role_name).one()
            db.add(
                models.User(
                    name=name,
                    email=email,
                    hashed_password=hash_password("123"),
                    role_id=role.id,
                    active=True,
                )
            )
            print(f"  user: {email}")

        for nome, banco, saldo in DEV_BANK_ACCOUNTS:
            db.add(models.BankAccount(nome=nome, banco=banco, saldo=saldo, ativo=True))
            print(f"  bank account: {nome} ({saldo})")

        for nome, tipo in DEV_CATEGORIES:
            db.add(models.AccountCategory(nome=nome, tipo=tipo, ativo=True))

        db.commit()
        print("Development database ready (password for every user: 123)")
        print(f"   Database: {db_path}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
