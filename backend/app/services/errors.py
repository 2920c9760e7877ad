"""Ledger error types.

Every error carries a stable machine code and the request field it refers to,
so the HTTP edge can report which rule tripped without parsing messages.
They stay ValueError subclasses so callers that only care about "bad input"
keep working.
"""

from __future__ import annotations


class LedgerError(ValueError):
    code = "ledger.error"
    field: str | None = None

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        if field is not None:
            self.field = field

    def as_detail(self) -> dict:
        return {"code": self.code, "field": self.field, "message": self.message}


class LedgerNotFound(LedgerError):
    code = "ledger.not_found"


class InvalidAmount(LedgerError):
    code = "ledger.invalid_amount"
    field = "valor"

    def __init__(self, message: str = "Valor deve ser maior que zero", *, field: str | None = None):
        super().__init__(message, field=field)


class SameAccount(LedgerError):
    code = "ledger.same_account"
    field = "contaDestinoId"

    def __init__(self):
        super().__init__("Conta de origem deve ser diferente da conta de destino")


class InsufficientFunds(LedgerError):
    code = "ledger.insufficient_funds"
    field = "valor"

    def __init__(self, *, account_id: int, balance, amount):
        super().__init__("Saldo insuficiente na conta de origem")
        self.account_id = account_id
        self.balance = balance
        self.amount = amount


class AccountNotFound(LedgerNotFound):
    code = "ledger.bank_account.not_found"
    field = "contaBancariaId"

    _SIDE_MESSAGES = {
        "contaOrigemId": "Conta de origem não encontrada",
        "contaDestinoId": "Conta de destino não encontrada",
    }

    def __init__(self, account_id: int, *, field: str | None = None):
        message = self._SIDE_MESSAGES.get(field or "", "Conta bancária não encontrada")
        super().__init__(message, field=field)
        self.account_id = account_id


class FinancialAccountNotFound(LedgerNotFound):
    code = "ledger.financial_account.not_found"
    field = "id"

    def __init__(self, account_id: int, *, field: str | None = None):
        super().__init__("Conta financeira não encontrada", field=field)
        self.account_id = account_id


class FinancialAccountLocked(LedgerError):
    """Shadow account already has ledger movements and cannot be replaced."""

    code = "ledger.financial_account.has_liquidations"
    field = "quemRecebe"

    def __init__(self, account_id: int):
        super().__init__("Conta financeira já possui liquidações e não pode ser removida")
        self.account_id = account_id


class OverpaymentRejected(LedgerError):
    code = "ledger.financial_account.overpayment"
    field = "valor"

    def __init__(self, *, account_id: int, open_amount, amount):
        super().__init__("Valor excede o saldo em aberto da conta financeira")
        self.account_id = account_id
        self.open_amount = open_amount
        self.amount = amount


class PaymentPlanNotFound(LedgerNotFound):
    code = "ledger.payment_plan.not_found"
    field = "id"

    def __init__(self, plan_id: int):
        super().__init__("Plano de pagamento não encontrado")
        self.plan_id = plan_id


class PaymentPlanAlreadyLiquidated(LedgerError):
    code = "ledger.payment_plan.already_liquidated"
    field = "id"

    def __init__(self, plan_id: int):
        super().__init__("Plano de pagamento já liquidado")
        self.plan_id = plan_id


class SaleNotFound(LedgerNotFound):
    code = "ledger.sale.not_found"
    field = "vendaId"

    def __init__(self, sale_id: int):
        super().__init__("Venda não encontrada")
        self.sale_id = sale_id


class CommissionNotFound(LedgerNotFound):
    code = "ledger.commission.not_found"
    field = "id"

    def __init__(self, commission_id: int):
        super().__init__("Comissão não encontrada")
        self.commission_id = commission_id


class CategoryNotFound(LedgerNotFound):
    code = "ledger.account_category.not_found"
    field = "categoriaId"

    def __init__(self, category_id: int, *, field: str | None = None):
        super().__init__("Categoria não encontrada", field=field)
        self.category_id = category_id


class ClientNotFound(LedgerNotFound):
    code = "ledger.client.not_found"
    field = "clienteId"

    def __init__(self, client_id: int):
        super().__init__("Cliente não encontrado")
        self.client_id = client_id


class SupplierNotFound(LedgerNotFound):
    code = "ledger.supplier.not_found"
    field = "fornecedorId"

    def __init__(self, supplier_id: int):
        super().__init__("Fornecedor não encontrado")
        self.supplier_id = supplier_id


class IdempotencyKeyConflict(LedgerError):
    """The key was already used for a different operation."""

    code = "ledger.idempotency_key.conflict"
    field = "idempotencyKey"

    def __init__(self, key: str):
        super().__init__("Chave de idempotência já utilizada para outra operação")
        self.key = key
