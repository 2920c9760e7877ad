from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app import models
from app.schemas.base import ApiModel


class BankAccountCreate(ApiModel):
    nome: str = Field(..., min_length=1, max_length=255)
    banco: Optional[str] = Field(default=None, max_length=100)
    agencia: Optional[str] = Field(default=None, max_length=20)
    conta: Optional[str] = Field(default=None, max_length=30)
    saldo: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    ativo: bool = True


class BankAccountUpdate(ApiModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    banco: Optional[str] = Field(default=None, max_length=100)
    agencia: Optional[str] = Field(default=None, max_length=20)
    conta: Optional[str] = Field(default=None, max_length=30)
    ativo: Optional[bool] = None


class BankAccountRead(ApiModel):
    id: int
    nome: str
    banco: Optional[str] = None
    agencia: Optional[str] = None
    conta: Optional[str] = None
    saldo: Decimal
    ativo: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BankTransactionCreate(ApiModel):
    conta_bancaria_id: int = Field(..., gt=0)
    conta_financeira_id: Optional[int] = Field(default=None, gt=0)
    descricao: str = Field(..., min_length=1)
    # Sign rules are enforced by the ledger (422), not the schema.
    valor: Decimal = Field(..., max_digits=12, decimal_places=2)
    tipo: models.TransactionDirection
    data_transacao: Optional[datetime] = None
    conciliado: bool = False
    anexos: list[str] = Field(default_factory=list)
    observacoes: Optional[str] = None


class BankTransactionRead(ApiModel):
    id: int
    conta_bancaria_id: int
    conta_financeira_id: Optional[int] = None
    descricao: str
    valor: Decimal
    tipo: models.TransactionDirection
    data_transacao: datetime
    saldo_anterior: Decimal
    saldo_novo: Decimal
    conciliado: bool
    anexos: Optional[list[str]] = None
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None


class TransferCreate(ApiModel):
    conta_origem_id: int = Field(..., gt=0)
    conta_destino_id: int = Field(..., gt=0)
    valor: Decimal = Field(..., max_digits=12, decimal_places=2)
    descricao: str = Field(..., min_length=1)
    observacoes: Optional[str] = None


class AccountBalanceRead(ApiModel):
    id: int
    nome: str
    saldo: Decimal


class UpdatedBalancesRead(ApiModel):
    conta_origem: AccountBalanceRead
    conta_destino: AccountBalanceRead


class TransferRead(ApiModel):
    message: str = "Transferência realizada com sucesso"
    transacao_saida: BankTransactionRead
    transacao_entrada: BankTransactionRead
    saldos_atualizados: UpdatedBalancesRead
