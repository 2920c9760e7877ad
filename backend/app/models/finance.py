# ruff: noqa: E501
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
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


class FinancialAccountType(PyEnum):
    pagar = "pagar"  # contas a pagar (payable)
    receber = "receber"  # contas a receber (receivable)


class PaymentStatus(PyEnum):
    pendente = "pendente"
    parcial = "parcial"
    liquidado = "liquidado"


class Receiver(PyEnum):
    AGENCIA = "AGENCIA"
    FORNECEDOR = "FORNECEDOR"


class CommissionStatus(PyEnum):
    a_receber = "a_receber"
    recebida = "recebida"


class CommissionType(PyEnum):
    vendedor = "vendedor"
    fornecedor = "fornecedor"


class AccountCategoryType(PyEnum):
    receita = "receita"
    despesa = "despesa"
    outros = "outros"


class AccountCategory(Base):
    __tablename__ = "account_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    tipo: Mapped[AccountCategoryType] = mapped_column(
        Enum(AccountCategoryType, native_enum=False), nullable=False
    )
    ativo: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class FinancialAccount(Base):
    """Receivable/payable obligation. valor_total == valor_liquidado + valor_aberto."""

    __tablename__ = "financial_accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    descricao: Mapped[str] = mapped_column(Text, nullable=False)
    venda_id: Mapped[int | None] = mapped_column(ForeignKey("sales.id"), nullable=True, index=True)
    # Shadow account of a payment plan (1:1).
    plano_pagamento_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_plans.id"), nullable=True, unique=True, index=True
    )
    tipo: Mapped[FinancialAccountType] = mapped_column(
        Enum(FinancialAccountType, native_enum=False), nullable=False, index=True
    )
    valor_total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    valor_liquidado: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    valor_aberto: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    data_vencimento: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False), nullable=False, default=PaymentStatus.pendente, index=True
    )
    categoria_id: Mapped[int | None] = mapped_column(ForeignKey("account_categories.id"), nullable=True)
    cliente_id: Mapped[int | None] = mapped_column(ForeignKey("clients.id"), nullable=True)
    fornecedor_id: Mapped[int | None] = mapped_column(ForeignKey("suppliers.id"), nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category = relationship("AccountCategory", lazy="joined")
    client = relationship("Client", lazy="joined")
    supplier = relationship("Supplier", lazy="joined")
    payment_plan = relationship("PaymentPlan", back_populates="financial_account")
    bank_transactions = relationship("BankTransaction", back_populates="financial_account")


class PaymentPlan(Base):
    __tablename__ = "payment_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    venda_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False, index=True)
    descricao: Mapped[str] = mapped_column(String(255), nullable=False)
    valor: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    data_vencimento: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    data_previsao_pagamento: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    forma_pagamento_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    condicao_pagamento_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quem_recebe: Mapped[Receiver] = mapped_column(Enum(Receiver, native_enum=False), nullable=False)
    cliente_pagante_id: Mapped[int | None] = mapped_column(ForeignKey("clients.id"), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False), nullable=False, default=PaymentStatus.pendente
    )
    data_liquidacao: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    valor_pago: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    valor_liquidado: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    saldo_aberto: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    conta_bancaria_id: Mapped[int | None] = mapped_column(ForeignKey("bank_accounts.id"), nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    sale = relationship("Sale", lazy="joined")
    financial_account = relationship("FinancialAccount", back_populates="payment_plan", uselist=False)


class SaleCommission(Base):
    __tablename__ = "sale_commissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    venda_id: Mapped[int] = mapped_column(ForeignKey("sales.id"), nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    tipo: Mapped[CommissionType] = mapped_column(Enum(CommissionType, native_enum=False), nullable=False)
    percentual: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    valor_comissao: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    data_previsao_recebimento: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[CommissionStatus] = mapped_column(
        Enum(CommissionStatus, native_enum=False), nullable=False, default=CommissionStatus.a_receber
    )
    data_recebimento: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    observacoes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    sale = relationship("Sale", lazy="joined")
    user = relationship("User", lazy="joined")
