from app import models

TRANSFER_URL = "/api/bank-accounts/transfer"


def test_transfer_returns_both_legs_and_balances(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(nome="Caixa", saldo="1000.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")

    res = client.post(
        TRANSFER_URL,
        json={
            "contaOrigemId": caixa.id,
            "contaDestinoId": banco.id,
            "valor": 250,
            "descricao": "reforço de caixa",
        },
    )

    assert res.status_code == 200, res.text
    body = res.json()
    assert body["message"] == "Transferência realizada com sucesso"
    assert body["transacaoSaida"]["tipo"] == "saida"
    assert body["transacaoSaida"]["saldoNovo"] == "750.00"
    assert body["transacaoEntrada"]["tipo"] == "entrada"
    assert body["transacaoEntrada"]["descricao"] == "Transfer received from Caixa: reforço de caixa"
    assert body["saldosAtualizados"]["contaOrigem"] == {"id": caixa.id, "nome": "Caixa", "saldo": "750.00"}
    assert body["saldosAtualizados"]["contaDestino"]["saldo"] == "250.00"


def test_transfer_insufficient_funds_is_422_on_valor(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(nome="Caixa", saldo="10.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")

    res = client.post(
        TRANSFER_URL,
        json={"contaOrigemId": caixa.id, "contaDestinoId": banco.id, "valor": "10.01", "descricao": "x"},
    )

    assert res.status_code == 422
    assert res.json() == {
        "code": "ledger.insufficient_funds",
        "field": "valor",
        "message": "Saldo insuficiente na conta de origem",
    }

    balances = client.get(f"/api/bank-accounts/{caixa.id}").json()
    assert balances["saldo"] == "10.00"


def test_transfer_same_account_is_422(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(saldo="10.00")

    res = client.post(
        TRANSFER_URL,
        json={"contaOrigemId": caixa.id, "contaDestinoId": caixa.id, "valor": 1, "descricao": "x"},
    )

    assert res.status_code == 422
    assert res.json()["field"] == "contaDestinoId"


def test_transfer_non_positive_amount_is_422(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    a = make_bank_account(nome="A", saldo="10.00")
    b = make_bank_account(nome="B", saldo="10.00")

    res = client.post(
        TRANSFER_URL,
        json={"contaOrigemId": a.id, "contaDestinoId": b.id, "valor": -5, "descricao": "x"},
    )

    assert res.status_code == 422
    assert res.json()["code"] == "ledger.invalid_amount"


def test_transfer_unknown_destination_is_422_not_404(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(saldo="10.00")

    res = client.post(
        TRANSFER_URL,
        json={"contaOrigemId": caixa.id, "contaDestinoId": 999, "valor": 1, "descricao": "x"},
    )

    assert res.status_code == 422
    assert res.json()["field"] == "contaDestinoId"
    assert res.json()["message"] == "Conta de destino não encontrada"


def test_transfer_malformed_body_is_400_with_field_list(client, as_role):
    as_role(models.RoleName.supervisor)

    res = client.post(TRANSFER_URL, json={"contaOrigemId": 0, "valor": 1})

    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Dados inválidos"
    fields = {e["field"] for e in body["errors"]}
    assert {"contaOrigemId", "contaDestinoId", "descricao"} <= fields


def test_transfer_replay_with_idempotency_header(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(nome="Caixa", saldo="100.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")
    payload = {"contaOrigemId": caixa.id, "contaDestinoId": banco.id, "valor": "40", "descricao": "x"}
    headers = {"Idempotency-Key": "req-42"}

    first = client.post(TRANSFER_URL, json=payload, headers=headers)
    second = client.post(TRANSFER_URL, json=payload, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["transacaoSaida"]["id"] == second.json()["transacaoSaida"]["id"]
    assert client.get(f"/api/bank-accounts/{caixa.id}").json()["saldo"] == "60.00"


def test_transfer_amount_beyond_column_precision_is_400(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(nome="Caixa", saldo="100.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")

    res = client.post(
        TRANSFER_URL,
        json={"contaOrigemId": caixa.id, "contaDestinoId": banco.id, "valor": "1e30", "descricao": "x"},
    )

    assert res.status_code == 400
    assert [e["field"] for e in res.json()["errors"]] == ["valor"]
    assert client.get(f"/api/bank-accounts/{caixa.id}").json()["saldo"] == "100.00"


def test_transfer_key_reused_with_other_amount_is_422(client, as_role, make_bank_account):
    as_role(models.RoleName.supervisor)
    caixa = make_bank_account(nome="Caixa", saldo="100.00")
    banco = make_bank_account(nome="Banco X", saldo="0.00")
    body = {"contaOrigemId": caixa.id, "contaDestinoId": banco.id, "valor": "10", "descricao": "x"}
    headers = {"Idempotency-Key": "tr-1"}

    assert client.post(TRANSFER_URL, json=body, headers=headers).status_code == 200

    res = client.post(TRANSFER_URL, json={**body, "valor": "20"}, headers=headers)

    assert res.status_code == 422
    assert res.json()["code"] == "ledger.idempotency_key.conflict"
    assert client.get(f"/api/bank-accounts/{caixa.id}").json()["saldo"] == "90.00"
