"""init ledger schema

Revision ID: 20261017_0001_init_ledger_schema
Revises: None
Create Date: 2026-10-17
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_0001_init_ledger_schema"
down_revision = None
branch_labels = None
depends_on = None


def _enum(*values: str, name: str) -> sa.Enum:
    # Stored as VARCHAR on every dialect; adding a value never needs ALTER TYPE.
    return sa.Enum(*values, name=name, native_enum=False, create_constraint=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    payment_status = _enum("pendente", "parcial", "liquidado", name="paymentstatus")

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", _enum("admin", "supervisor", "vendedor", name="rolename"), nullable=False, unique=True),
        sa.Column("description", sa.String(length=255)),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.Integer(), sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.true()),
        sa.Column("telefone", sa.String(length=20)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("payload_json", sa.Text()),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=256), nullable=True),
        sa.Column("idempotency_key", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])
    op.create_index("ix_audit_logs_idempotency_key", "audit_logs", ["idempotency_key"], unique=True)

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("telefone", sa.String(length=20)),
        sa.Column("cpf", sa.String(length=14)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("cnpj", sa.String(length=18)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "sellers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255)),
        sa.Column("comissao_percentual", sa.Numeric(5, 2), server_default="0"),
        sa.Column("ativo", sa.Boolean(), server_default=sa.true()),
    )

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("referencia", sa.String(length=50), nullable=False, unique=True),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("fornecedor_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column(
            "status",
            _enum("orcamento", "venda", "cancelada", name="salestatus"),
            nullable=False,
            server_default="orcamento",
        ),
        sa.Column("valor_total", sa.Numeric(10, 2), server_default="0"),
        sa.Column("custo_total", sa.Numeric(10, 2), server_default="0"),
        sa.Column("lucro", sa.Numeric(10, 2), server_default="0"),
        sa.Column("observacoes", sa.Text()),
        sa.Column("data_venda", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sales_cliente_id", "sales", ["cliente_id"])

    op.create_table(
        "sale_sellers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venda_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("vendedor_id", sa.Integer(), sa.ForeignKey("sellers.id"), nullable=False),
        sa.Column("comissao_percentual", sa.Numeric(5, 2), nullable=False),
        sa.Column("valor_comissao", sa.Numeric(10, 2), server_default="0"),
    )
    op.create_index("ix_sale_sellers_venda_id", "sale_sellers", ["venda_id"])

    op.create_table(
        "account_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("tipo", _enum("receita", "despesa", "outros", name="accountcategorytype"), nullable=False),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=255), nullable=False),
        sa.Column("banco", sa.String(length=100)),
        sa.Column("agencia", sa.String(length=20)),
        sa.Column("conta", sa.String(length=30)),
        sa.Column("saldo", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("ativo", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_bank_accounts_ativo", "bank_accounts", ["ativo"])

    op.create_table(
        "payment_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venda_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("descricao", sa.String(length=255), nullable=False),
        sa.Column("valor", sa.Numeric(10, 2), nullable=False),
        sa.Column("data_vencimento", sa.DateTime(timezone=True), nullable=False),
        sa.Column("data_previsao_pagamento", sa.DateTime(timezone=True)),
        sa.Column("forma_pagamento_id", sa.Integer(), nullable=True),
        sa.Column("condicao_pagamento_id", sa.Integer(), nullable=True),
        sa.Column("quem_recebe", _enum("AGENCIA", "FORNECEDOR", name="receiver"), nullable=False),
        sa.Column("cliente_pagante_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("status", payment_status, nullable=False, server_default="pendente"),
        sa.Column("data_liquidacao", sa.DateTime(timezone=True)),
        sa.Column("valor_pago", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("valor_liquidado", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("saldo_aberto", sa.Numeric(10, 2), nullable=False),
        sa.Column("conta_bancaria_id", sa.Integer(), sa.ForeignKey("bank_accounts.id"), nullable=True),
        sa.Column("observacoes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_payment_plans_venda_id", "payment_plans", ["venda_id"])

    op.create_table(
        "financial_accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("descricao", sa.Text(), nullable=False),
        sa.Column("venda_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=True),
        sa.Column("plano_pagamento_id", sa.Integer(), sa.ForeignKey("payment_plans.id"), nullable=True),
        sa.Column("tipo", _enum("pagar", "receber", name="financialaccounttype"), nullable=False),
        sa.Column("valor_total", sa.Numeric(10, 2), nullable=False),
        sa.Column("valor_liquidado", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("valor_aberto", sa.Numeric(10, 2), nullable=False),
        sa.Column("data_vencimento", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", payment_status, nullable=False, server_default="pendente"),
        sa.Column("categoria_id", sa.Integer(), sa.ForeignKey("account_categories.id"), nullable=True),
        sa.Column("cliente_id", sa.Integer(), sa.ForeignKey("clients.id"), nullable=True),
        sa.Column("fornecedor_id", sa.Integer(), sa.ForeignKey("suppliers.id"), nullable=True),
        sa.Column("observacoes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_financial_accounts_venda_id", "financial_accounts", ["venda_id"])
    op.create_index(
        "ix_financial_accounts_plano_pagamento_id",
        "financial_accounts",
        ["plano_pagamento_id"],
        unique=True,
    )
    op.create_index("ix_financial_accounts_tipo", "financial_accounts", ["tipo"])
    op.create_index("ix_financial_accounts_status", "financial_accounts", ["status"])
    op.create_index("ix_financial_accounts_created_at", "financial_accounts", ["created_at"])

    op.create_table(
        "bank_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("conta_bancaria_id", sa.Integer(), sa.ForeignKey("bank_accounts.id"), nullable=False),
        sa.Column(
            "conta_financeira_id", sa.Integer(), sa.ForeignKey("financial_accounts.id"), nullable=True
        ),
        sa.Column("descricao", sa.Text(), nullable=False),
        sa.Column("valor", sa.Numeric(12, 2), nullable=False),
        sa.Column("tipo", _enum("entrada", "saida", name="transactiondirection"), nullable=False),
        sa.Column("data_transacao", sa.DateTime(timezone=True), nullable=False),
        sa.Column("saldo_anterior", sa.Numeric(12, 2), nullable=False),
        sa.Column("saldo_novo", sa.Numeric(12, 2), nullable=False),
        sa.Column("conciliado", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("anexos", sa.JSON(), nullable=True),
        sa.Column("observacoes", sa.Text()),
        sa.Column("idempotency_key", sa.String(length=160), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("valor > 0", name="ck_bank_transactions_valor_positive"),
    )
    op.create_index("ix_bank_transactions_conta_bancaria_id", "bank_transactions", ["conta_bancaria_id"])
    op.create_index(
        "ix_bank_transactions_conta_financeira_id", "bank_transactions", ["conta_financeira_id"]
    )
    op.create_index("ix_bank_transactions_data_transacao", "bank_transactions", ["data_transacao"])
    op.create_index(
        "ix_bank_transactions_idempotency_key", "bank_transactions", ["idempotency_key"], unique=True
    )

    op.create_table(
        "sale_commissions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("venda_id", sa.Integer(), sa.ForeignKey("sales.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("tipo", _enum("vendedor", "fornecedor", name="commissiontype"), nullable=False),
        sa.Column("percentual", sa.Numeric(5, 2), nullable=False),
        sa.Column("valor_comissao", sa.Numeric(10, 2), nullable=False),
        sa.Column("data_previsao_recebimento", sa.DateTime(timezone=True)),
        sa.Column(
            "status",
            _enum("a_receber", "recebida", name="commissionstatus"),
            nullable=False,
            server_default="a_receber",
        ),
        sa.Column("data_recebimento", sa.DateTime(timezone=True)),
        sa.Column("observacoes", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_sale_commissions_venda_id", "sale_commissions", ["venda_id"])
    op.create_index("ix_sale_commissions_user_id", "sale_commissions", ["user_id"])
    op.create_index("ix_sale_commissions_created_at", "sale_commissions", ["created_at"])

    roles = sa.table(
        "roles",
        sa.column("name", sa.String),
        sa.column("description", sa.String),
    )
    op.bulk_insert(
        roles,
        [
            {"name": "admin", "description": "admin"},
            {"name": "supervisor", "description": "supervisor"},
            {"name": "vendedor", "description": "vendedor"},
        ],
    )


def downgrade() -> None:
    for table in (
        "sale_commissions",
        "bank_transactions",
        "financial_accounts",
        "payment_plans",
        "bank_accounts",
        "account_categories",
        "sale_sellers",
        "sales",
        "sellers",
        "suppliers",
        "clients",
        "audit_logs",
        "users",
        "roles",
    ):
        op.drop_table(table)
