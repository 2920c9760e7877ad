from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from app import models
from app.schemas.banking import BankTransactionRead
from app.schemas.base import ApiModel


class PartyMiniRead(ApiModel):
    id: int
    nome: str


class AccountCategoryCreate(ApiModel):
    nome: str = Field(..., min_length=1, max_length=255)
    tipo: models.AccountCategoryType
    ativo: bool = True


class AccountCategoryUpdate(ApiModel):
    nome: Optional[str] = Field(default=None, min_length=1, max_length=255)
    tipo: Optional[models.AccountCategoryType] = None
    ativo: Optional[bool] = None


class AccountCategoryRead(ApiModel):
    id: int
    nome: str
    tipo: models.AccountCategoryType
    ativo: bool


class FinancialAccountCreate(ApiModel):
    descricao: str = Field(..., min_length=1)
    tipo: models.FinancialAccountType
    valor_total: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    data_vencimento: Optional[datetime] = None
    venda_id: Optional[int] = None
    categoria_id: Optional[int] = None
    cliente_id: Optional[int] = None
    fornecedor_id: Optional[int] = None
    observacoes: Optional[str] = None


class FinancialAccountRead(ApiModel):
    id: int
    descricao: str
    venda_id: Optional[int] = None
    plano_pagamento_id: Optional[int] = None
    tipo: models.FinancialAccountType
    valor_total: Decimal
    valor_liquidado: Decimal
    valor_aberto: Decimal
    data_vencimento: Optional[datetime] = None
    status: models.PaymentStatus
    categoria_id: Optional[int] = None
    cliente_id: Optional[int] = None
    fornecedor_id: Optional[int] = None
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    category: Optional[AccountCategoryRead] = None
    client: Optional[PartyMiniRead] = None
    supplier: Optional[PartyMiniRead] = None


class FinancialAccountLiquidate(ApiModel):
    valor: Decimal = Field(..., max_digits=10, decimal_places=2)
    conta_bancaria_id: int = Field(..., gt=0)
    data_liquidacao: Optional[datetime] = None
    categoria_id: Optional[int] = None
    anexos: list[str] = Field(default_factory=list)


class LiquidationRead(ApiModel):
    conta_financeira: FinancialAccountRead
    transacao: BankTransactionRead


class CategoryAmountRead(ApiModel):
    categoria: str
    valor: Decimal


class FinancialSummaryRead(ApiModel):
    periodo: str
    receitas: list[CategoryAmountRead]
    despesas: list[CategoryAmountRead]
    total_receitas: Decimal
    total_despesas: Decimal
    lucro_liquido: Decimal


class PaymentPlanCreate(ApiModel):
    venda_id: int = Field(..., gt=0)
    descricao: str = Field(..., min_length=1, max_length=255)
    valor: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    data_vencimento: datetime
    quem_recebe: models.Receiver
    data_previsao_pagamento: Optional[datetime] = None
    forma_pagamento_id: Optional[int] = None
    condicao_pagamento_id: Optional[int] = None
    cliente_pagante_id: Optional[int] = None
    conta_bancaria_id: Optional[int] = None
    observacoes: Optional[str] = None


class PaymentPlanUpdate(ApiModel):
    descricao: Optional[str] = Field(default=None, min_length=1, max_length=255)
    valor: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    data_vencimento: Optional[datetime] = None
    quem_recebe: Optional[models.Receiver] = None
    data_previsao_pagamento: Optional[datetime] = None
    forma_pagamento_id: Optional[int] = None
    condicao_pagamento_id: Optional[int] = None
    cliente_pagante_id: Optional[int] = None
    conta_bancaria_id: Optional[int] = None
    observacoes: Optional[str] = None


class PaymentPlanLiquidate(ApiModel):
    data_liquidacao: datetime
    observacoes: Optional[str] = None


class PaymentPlanRead(ApiModel):
    id: int
    venda_id: int
    descricao: str
    valor: Decimal
    data_vencimento: datetime
    data_previsao_pagamento: Optional[datetime] = None
    forma_pagamento_id: Optional[int] = None
    condicao_pagamento_id: Optional[int] = None
    quem_recebe: models.Receiver
    cliente_pagante_id: Optional[int] = None
    status: models.PaymentStatus
    data_liquidacao: Optional[datetime] = None
    valor_pago: Decimal
    valor_liquidado: Decimal
    saldo_aberto: Decimal
    conta_bancaria_id: Optional[int] = None
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SaleCommissionRead(ApiModel):
    id: int
    venda_id: int
    user_id: Optional[int] = None
    tipo: models.CommissionType
    percentual: Decimal
    valor_comissao: Decimal
    data_previsao_recebimento: Optional[datetime] = None
    data_recebimento: Optional[datetime] = None
    status: models.CommissionStatus
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None


class PaymentPlanLiquidationRead(ApiModel):
    plano: PaymentPlanRead
    conta_financeira: Optional[FinancialAccountRead] = None
    comissao: Optional[SaleCommissionRead] = None
