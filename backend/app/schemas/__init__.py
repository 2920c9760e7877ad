from app.schemas.banking import (
    AccountBalanceRead,
    BankAccountCreate,
    BankAccountRead,
    BankAccountUpdate,
    BankTransactionCreate,
    BankTransactionRead,
    TransferCreate,
    TransferRead,
    UpdatedBalancesRead,
)
from app.schemas.finance import (
    AccountCategoryCreate,
    AccountCategoryRead,
    AccountCategoryUpdate,
    CategoryAmountRead,
    FinancialAccountCreate,
    FinancialAccountLiquidate,
    FinancialAccountRead,
    FinancialSummaryRead,
    LiquidationRead,
    PaymentPlanCreate,
    PaymentPlanLiquidate,
    PaymentPlanLiquidationRead,
    PaymentPlanRead,
    PaymentPlanUpdate,
    SaleCommissionRead,
)
from app.schemas.sales import SaleRead, SaleStatusUpdate
from app.schemas.users import RoleRead, Token, UserRead

__all__ = [
    "AccountBalanceRead",
    "AccountCategoryCreate",
    "AccountCategoryRead",
    "AccountCategoryUpdate",
    "BankAccountCreate",
    "BankAccountRead",
    "BankAccountUpdate",
    "BankTransactionCreate",
    "BankTransactionRead",
    "CategoryAmountRead",
    "FinancialAccountCreate",
    "FinancialAccountLiquidate",
    "FinancialAccountRead",
    "FinancialSummaryRead",
    "LiquidationRead",
    "PaymentPlanCreate",
    "PaymentPlanLiquidate",
    "PaymentPlanLiquidationRead",
    "PaymentPlanRead",
    "PaymentPlanUpdate",
    "RoleRead",
    "SaleCommissionRead",
    "SaleRead",
    "SaleStatusUpdate",
    "Token",
    "TransferCreate",
    "TransferRead",
    "UpdatedBalancesRead",
    "UserRead",
]
