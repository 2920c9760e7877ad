from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from app import models
from app.schemas.base import ApiModel


class SaleStatusUpdate(ApiModel):
    status: models.SaleStatus


class SaleRead(ApiModel):
    id: int
    referencia: str
    cliente_id: int
    fornecedor_id: Optional[int] = None
    status: models.SaleStatus
    valor_total: Decimal
    custo_total: Decimal
    lucro: Decimal
    data_venda: Optional[datetime] = None
    updated_at: Optional[datetime] = None
