"""
Banking models

Contas bancárias e o livro de movimentações (ledger) que deriva o saldo.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class TransactionDirection(PyEnum):
    entrada = "entrada"
    saida = "saida"


class BankAccount(Base):
    __tablename__ = "bank_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    banco: Mapped[str | None] = mapped_column(String(100))
    agencia: Mapped[str | None] = mapped_column(String(20))
    conta: Mapped[str | None] = mapped_column(String(30))
    # Only ledger writes touch this column.
    saldo: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    transactions = relationship("BankTransaction", back_populates="bank_account")

    def __repr__(self):
        return f"<BankAccount(id={self.id}, nome='{self.nome}', saldo={self.saldo})>"


class BankTransaction(Base):
    """Append-only ledger row with before/after balance snapshots."""

    __tablename__ = "bank_transactions"
    __table_args__ = (CheckConstraint("valor > 0", name="ck_bank_transactions_valor_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conta_bancaria_id: Mapped[int] = mapped_column(
        ForeignKey("bank_accounts.id"), nullable=False, index=True
    )
    conta_financeira_id: Mapped[int | None] = mapped_column(
        ForeignKey("financial_accounts.id"), nullable=True, index=True
    )
    descricao: Mapped[str] = mapped_column(Text, nullable=False)
    valor: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tipo: Mapped[TransactionDirection] = mapped_column(
        Enum(TransactionDirection, native_enum=False), nullable=False
    )
    data_transacao: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    saldo_anterior: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    saldo_novo: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    conciliado: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    anexos: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text)

    # Client-supplied dedupe token (suffixed per leg for transfers).
    idempotency_key: Mapped[str | None] = mapped_column(
        String(160), nullable=True, unique=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    bank_account = relationship("BankAccount", back_populates="transactions")
    financial_account = relationship("FinancialAccount", back_populates="bank_transactions")
