from app import models


def test_create_list_get_update_deactivate(client, as_role):
    as_role(models.RoleName.supervisor)

    created = client.post(
        "/api/bank-accounts",
        json={"nome": "Banco X", "banco": "Banco X S.A.", "agencia": "0001", "saldo": "150.5"},
    )
    assert created.status_code == 201, created.text
    account = created.json()
    assert account["saldo"] == "150.50"
    assert account["ativo"] is True

    listed = client.get("/api/bank-accounts").json()
    assert [a["id"] for a in listed] == [account["id"]]

    fetched = client.get(f"/api/bank-accounts/{account['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["agencia"] == "0001"

    updated = client.put(f"/api/bank-accounts/{account['id']}", json={"nome": "Banco Y"})
    assert updated.status_code == 200
    assert updated.json()["nome"] == "Banco Y"
    assert updated.json()["saldo"] == "150.50"

    deactivated = client.delete(f"/api/bank-accounts/{account['id']}")
    assert deactivated.status_code == 200
    assert deactivated.json()["ativo"] is False
    assert client.get("/api/bank-accounts").json() == []


def test_update_cannot_touch_balance(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    account = make_bank_account(saldo="10.00")

    res = client.put(f"/api/bank-accounts/{account.id}", json={"saldo": "9999.00"})

    assert res.status_code == 200
    assert res.json()["saldo"] == "10.00"


def test_negative_opening_balance_is_400(client, as_role):
    as_role(models.RoleName.supervisor)

    res = client.post("/api/bank-accounts", json={"nome": "Caixa", "saldo": "-1"})

    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "saldo"


def test_unknown_bank_account_is_404(client, as_role):
    as_role(models.RoleName.supervisor)

    res = client.get("/api/bank-accounts/999")

    assert res.status_code == 404
    assert res.json()["code"] == "ledger.bank_account.not_found"


def test_transactions_listing_newest_first(client, as_role, make_bank_account):
    as_role(models.RoleName.admin)
    account = make_bank_account(saldo="0.00")
    for day, descricao in (("2026-05-01T10:00:00Z", "primeira"), ("2026-05-03T10:00:00Z", "segunda")):
        res = client.post(
            "/api/bank-transactions",
            json={
                "contaBancariaId": account.id,
                "descricao": descricao,
                "valor": "10",
                "tipo": "entrada",
                "dataTransacao": day,
            },
        )
        assert res.status_code == 201, res.text

    rows = client.get(f"/api/bank-accounts/{account.id}/transactions").json()
    assert [r["descricao"] for r in rows] == ["segunda", "primeira"]
    assert rows[0]["saldoAnterior"] == "10.00"
    assert rows[0]["saldoNovo"] == "20.00"

    window = client.get(
        f"/api/bank-accounts/{account.id}/transactions",
        params={"dateFrom": "2026-05-02", "dateTo": "2026-05-31"},
    ).json()
    assert [r["descricao"] for r in window] == ["segunda"]


def test_transactions_of_unknown_account_is_404(client, as_role):
    as_role(models.RoleName.supervisor)

    assert client.get("/api/bank-accounts/999/transactions").status_code == 404


def test_direct_entry_non_positive_amount_is_422(client, as_role, make_bank_account):
    as_role(models.RoleName.admin)
    account = make_bank_account()

    res = client.post(
        "/api/bank-transactions",
        json={"contaBancariaId": account.id, "descricao": "x", "valor": "0", "tipo": "saida"},
    )

    assert res.status_code == 422
    assert res.json()["field"] == "valor"


def test_direct_entry_unknown_account_is_404(client, as_role):
    as_role(models.RoleName.admin)

    res = client.post(
        "/api/bank-transactions",
        json={"contaBancariaId": 999, "descricao": "x", "valor": "5", "tipo": "entrada"},
    )

    assert res.status_code == 404
