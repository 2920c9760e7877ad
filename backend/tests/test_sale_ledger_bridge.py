from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app import models
from app.services import sale_commissions
from app.services import sale_ledger_bridge as bridge
from app.services.errors import (
    CommissionNotFound,
    FinancialAccountLocked,
    PaymentPlanAlreadyLiquidated,
    PaymentPlanNotFound,
    SaleNotFound,
)
from app.services.financial_accounts import liquidate_financial_account

DUE = datetime(2026, 11, 10, tzinfo=timezone.utc)


def _sale_accounts(db_session, sale_id):
    db_session.expire_all()
    return (
        db_session.query(models.FinancialAccount)
        .filter(models.FinancialAccount.venda_id == sale_id)
        .order_by(models.FinancialAccount.id.asc())
        .all()
    )


def _add_seller(db_session, sale, nome, valor_comissao):
    seller = models.Seller(nome=nome, comissao_percentual=Decimal("5.00"))
    db_session.add(seller)
    db_session.flush()
    db_session.add(
        models.SaleSeller(
            venda_id=sale.id,
            vendedor_id=seller.id,
            comissao_percentual=Decimal("5.00"),
            valor_comissao=Decimal(valor_comissao),
        )
    )
    db_session.commit()


def _plan(db_session, sale, quem_recebe=models.Receiver.AGENCIA, valor="400.00", descricao="Entrada"):
    return bridge.create_payment_plan(
        db=db_session,
        venda_id=sale.id,
        descricao=descricao,
        valor=valor,
        data_vencimento=DUE,
        quem_recebe=quem_recebe,
    )


def _shadow(db_session, plan_id):
    db_session.expire_all()
    return (
        db_session.query(models.FinancialAccount)
        .filter(models.FinancialAccount.plano_pagamento_id == plan_id)
        .one_or_none()
    )


# Sale confirmation


def test_confirming_sale_books_receivable_cost_and_commissions(db_session, make_sale):
    sale = make_sale(referencia="V-100", valor_total="1000.00", custo_total="700.00")
    _add_seller(db_session, sale, "Ana", "50.00")
    _add_seller(db_session, sale, "Bruno", "0.00")

    updated = bridge.update_sale_status(db=db_session, sale_id=sale.id, status=models.SaleStatus.venda)
    assert updated.status == models.SaleStatus.venda
    assert updated.data_venda is not None

    accounts = _sale_accounts(db_session, sale.id)
    assert [(a.descricao, a.tipo, a.valor_total) for a in accounts] == [
        ("Recebimento Cliente - Venda V-100", models.FinancialAccountType.receber, Decimal("1000.00")),
        ("Repasse Fornecedores - Venda V-100", models.FinancialAccountType.pagar, Decimal("700.00")),
        ("Comissão Ana - Venda V-100", models.FinancialAccountType.pagar, Decimal("50.00")),
    ]
    for account in accounts:
        assert account.status == models.PaymentStatus.pendente
        assert account.valor_aberto == account.valor_total
    assert accounts[0].cliente_id == sale.cliente_id
    assert accounts[1].fornecedor_id == sale.fornecedor_id


def test_zero_cost_sale_has_no_supplier_payable(db_session, make_sale):
    sale = make_sale(custo_total="0.00", with_supplier=False)

    bridge.update_sale_status(db=db_session, sale_id=sale.id, status=models.SaleStatus.venda)

    accounts = _sale_accounts(db_session, sale.id)
    assert [a.tipo for a in accounts] == [models.FinancialAccountType.receber]


def test_reconfirming_sale_does_not_duplicate_accounts(db_session, make_sale):
    sale = make_sale()

    bridge.update_sale_status(db=db_session, sale_id=sale.id, status=models.SaleStatus.venda)
    bridge.update_sale_status(db=db_session, sale_id=sale.id, status=models.SaleStatus.venda)

    assert len(_sale_accounts(db_session, sale.id)) == 2


def test_leaving_venda_clears_sale_date(db_session, make_sale):
    sale = make_sale()
    bridge.update_sale_status(db=db_session, sale_id=sale.id, status=models.SaleStatus.venda)

    updated = bridge.update_sale_status(
        db=db_session, sale_id=sale.id, status=models.SaleStatus.cancelada
    )
    assert updated.data_venda is None


def test_unknown_sale(db_session):
    with pytest.raises(SaleNotFound):
        bridge.update_sale_status(db=db_session, sale_id=999, status=models.SaleStatus.venda)


# Payment plan shadow accounts


def test_agency_plan_gets_receivable_shadow(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)

    assert plan.saldo_aberto == Decimal("400.00")
    assert plan.status == models.PaymentStatus.pendente

    shadow = _shadow(db_session, plan.id)
    assert shadow.tipo == models.FinancialAccountType.receber
    assert shadow.valor_total == Decimal("400.00")
    assert shadow.cliente_id == sale.cliente_id
    assert shadow.venda_id == sale.id


def test_supplier_plan_without_supplier_has_no_shadow(db_session, make_sale):
    sale = make_sale(with_supplier=False)
    plan = _plan(db_session, sale, quem_recebe=models.Receiver.FORNECEDOR)

    assert _shadow(db_session, plan.id) is None


def test_plan_for_unknown_sale(db_session):
    with pytest.raises(SaleNotFound):
        bridge.create_payment_plan(
            db=db_session,
            venda_id=999,
            descricao="x",
            valor="10.00",
            data_vencimento=DUE,
            quem_recebe=models.Receiver.AGENCIA,
        )


def test_update_patches_shadow_in_place(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)
    shadow_id = _shadow(db_session, plan.id).id

    bridge.update_payment_plan(
        db=db_session,
        plan_id=plan.id,
        changes={"valor": "450.00", "descricao": "Sinal", "data_vencimento": DUE + timedelta(days=5)},
    )

    shadow = _shadow(db_session, plan.id)
    assert shadow.id == shadow_id
    assert shadow.valor_total == Decimal("450.00")
    assert shadow.valor_aberto == Decimal("450.00")
    assert "Sinal" in shadow.descricao


def test_receiver_change_recreates_shadow_with_opposite_direction(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)
    assert _shadow(db_session, plan.id).tipo == models.FinancialAccountType.receber

    bridge.update_payment_plan(
        db=db_session, plan_id=plan.id, changes={"quem_recebe": models.Receiver.FORNECEDOR}
    )

    shadow = _shadow(db_session, plan.id)
    assert shadow.tipo == models.FinancialAccountType.pagar
    assert shadow.fornecedor_id == sale.fornecedor_id
    assert shadow.cliente_id is None
    shadows = (
        db_session.query(models.FinancialAccount)
        .filter(models.FinancialAccount.plano_pagamento_id == plan.id)
        .all()
    )
    assert [s.tipo for s in shadows] == [models.FinancialAccountType.pagar]


def test_receiver_change_blocked_once_shadow_has_liquidations(db_session, make_sale, make_bank_account):
    sale = make_sale()
    plan = _plan(db_session, sale)
    banco = make_bank_account()
    liquidate_financial_account(
        db=db_session,
        account_id=_shadow(db_session, plan.id).id,
        valor="100.00",
        conta_bancaria_id=banco.id,
    )

    with pytest.raises(FinancialAccountLocked):
        bridge.update_payment_plan(
            db=db_session, plan_id=plan.id, changes={"quem_recebe": models.Receiver.FORNECEDOR}
        )

    db_session.expire_all()
    assert db_session.get(models.PaymentPlan, plan.id).quem_recebe == models.Receiver.AGENCIA


def test_delete_removes_plan_and_shadow(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)

    bridge.delete_payment_plan(db=db_session, plan_id=plan.id)

    db_session.expire_all()
    assert db_session.get(models.PaymentPlan, plan.id) is None
    assert db_session.query(models.FinancialAccount).count() == 0


def test_delete_unknown_plan(db_session):
    with pytest.raises(PaymentPlanNotFound):
        bridge.delete_payment_plan(db=db_session, plan_id=999)


def test_list_plans_by_sale_ordered_by_due_date(db_session, make_sale):
    sale = make_sale()
    later = bridge.create_payment_plan(
        db=db_session,
        venda_id=sale.id,
        descricao="Saldo",
        valor="600.00",
        data_vencimento=DUE + timedelta(days=30),
        quem_recebe=models.Receiver.AGENCIA,
    )
    sooner = _plan(db_session, sale)

    plans = bridge.list_payment_plans(db=db_session, venda_id=sale.id)
    assert [p.id for p in plans] == [sooner.id, later.id]


# Payment plan liquidation


def test_agency_plan_liquidation_syncs_shadow(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)
    when = datetime(2026, 11, 12, tzinfo=timezone.utc)

    result = bridge.liquidate_payment_plan(
        db=db_session, plan_id=plan.id, data_liquidacao=when, observacoes="pago no pix"
    )

    assert result.plano.status == models.PaymentStatus.liquidado
    assert result.plano.valor_liquidado == Decimal("400.00")
    assert result.plano.saldo_aberto == Decimal("0.00")
    assert result.plano.observacoes == "pago no pix"
    assert result.conta_financeira.tipo == models.FinancialAccountType.receber
    assert result.comissao is None
    assert db_session.query(models.FinancialAccount).count() == 1
    assert db_session.query(models.BankTransaction).count() == 0


def test_supplier_plan_liquidation_creates_commission(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale, quem_recebe=models.Receiver.FORNECEDOR, valor="1000.00", descricao="Hotel")
    when = datetime(2026, 11, 12, tzinfo=timezone.utc)

    result = bridge.liquidate_payment_plan(db=db_session, plan_id=plan.id, data_liquidacao=when)

    assert result.conta_financeira.tipo == models.FinancialAccountType.pagar
    commission = result.comissao
    assert commission.tipo == models.CommissionType.fornecedor
    assert commission.status == models.CommissionStatus.a_receber
    assert commission.percentual == Decimal("5.00")
    assert commission.valor_comissao == Decimal("50.00")
    assert commission.user_id is None
    assert commission.observacoes == "Comissão referente ao pagamento: Hotel"
    assert commission.data_previsao_recebimento.date() == (when + timedelta(days=30)).date()


def test_plan_cannot_be_liquidated_twice(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale)
    when = datetime(2026, 11, 12, tzinfo=timezone.utc)
    bridge.liquidate_payment_plan(db=db_session, plan_id=plan.id, data_liquidacao=when)

    with pytest.raises(PaymentPlanAlreadyLiquidated):
        bridge.liquidate_payment_plan(db=db_session, plan_id=plan.id, data_liquidacao=when)


def test_liquidated_plan_value_cannot_change(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale, valor="100.00")
    bridge.liquidate_payment_plan(
        db=db_session, plan_id=plan.id, data_liquidacao=datetime(2026, 11, 12, tzinfo=timezone.utc)
    )

    with pytest.raises(PaymentPlanAlreadyLiquidated):
        bridge.update_payment_plan(db=db_session, plan_id=plan.id, changes={"valor": "150.00"})

    db_session.expire_all()
    stored = db_session.get(models.PaymentPlan, plan.id)
    assert stored.status == models.PaymentStatus.liquidado
    assert stored.valor == Decimal("100.00")
    assert stored.saldo_aberto == Decimal("0.00")


def test_liquidated_plan_accepts_notes(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale, valor="100.00")
    bridge.liquidate_payment_plan(
        db=db_session, plan_id=plan.id, data_liquidacao=datetime(2026, 11, 12, tzinfo=timezone.utc)
    )

    updated = bridge.update_payment_plan(
        db=db_session, plan_id=plan.id, changes={"observacoes": "comprovante anexado"}
    )

    assert updated.status == models.PaymentStatus.liquidado
    assert updated.observacoes == "comprovante anexado"


# Commissions


def test_mark_commission_received(db_session, make_sale):
    sale = make_sale()
    plan = _plan(db_session, sale, quem_recebe=models.Receiver.FORNECEDOR)
    result = bridge.liquidate_payment_plan(
        db=db_session, plan_id=plan.id, data_liquidacao=datetime(2026, 11, 12, tzinfo=timezone.utc)
    )

    received = sale_commissions.mark_commission_received(
        db=db_session, commission_id=result.comissao.id
    )
    assert received.status == models.CommissionStatus.recebida
    assert received.data_recebimento is not None

    listed = sale_commissions.list_sale_commissions(db=db_session, venda_id=sale.id)
    assert [c.id for c in listed] == [received.id]


def test_mark_unknown_commission(db_session):
    with pytest.raises(CommissionNotFound):
        sale_commissions.mark_commission_received(db=db_session, commission_id=999)
