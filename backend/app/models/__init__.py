from app.models.banking import BankAccount, BankTransaction, TransactionDirection
from app.models.domain import (
    AuditLog,
    Client,
    Role,
    RoleName,
    Sale,
    SaleSeller,
    SaleStatus,
    Seller,
    Supplier,
    User,
)
from app.models.finance import (
    AccountCategory,
    AccountCategoryType,
    CommissionStatus,
    CommissionType,
    FinancialAccount,
    FinancialAccountType,
    PaymentPlan,
    PaymentStatus,
    Receiver,
    SaleCommission,
)

__all__ = [
    "AccountCategory",
    "AccountCategoryType",
    "AuditLog",
    "BankAccount",
    "BankTransaction",
    "Client",
    "CommissionStatus",
    "CommissionType",
    "FinancialAccount",
    "FinancialAccountType",
    "PaymentPlan",
    "PaymentStatus",
    "Receiver",
    "Role",
    "RoleName",
    "Sale",
    "SaleCommission",
    "SaleSeller",
    "SaleStatus",
    "Seller",
    "Supplier",
    "TransactionDirection",
    "User",
]
