"""
Tests for POST /deposit and POST /withdraw
"""
import pytest


class TestDeposit:

    async def test_deposit(self, client, balance, publisher):
        response = await client.post("/deposit", json={"accountNumber": "ACC001", "amount": 1000})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Deposit successful"
        tx = body["transaction"]
        assert tx["type"] == "DEPOSIT"
        assert tx["accountNumber"] == "ACC001"
        assert tx["amount"] == 1000
        assert tx["previousBalance"] == 5000
        assert tx["newBalance"] == 6000
        assert "timestamp" in tx
        assert await balance("ACC001") == 6000
        assert publisher.of_type("DEPOSIT_COMPLETED")[0]["amount"] == 1000

    @pytest.mark.parametrize("body", [{}, {"accountNumber": "ACC001"}, {"amount": 10},
                                      {"accountNumber": "ACC001", "amount": 0}])
    async def test_missing_fields(self, client, body):
        response = await client.post("/deposit", json=body)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Bad Request",
            "message": "accountNumber and amount are required",
        }

    @pytest.mark.parametrize("amount", [-5, "10", True])
    async def test_invalid_amount(self, client, amount, balance):
        response = await client.post("/deposit", json={"accountNumber": "ACC001", "amount": amount})

        assert response.status_code == 400
        assert response.json()["message"] == "Amount must be a positive number"
        assert await balance("ACC001") == 5000

    @pytest.mark.parametrize("number", [{"$ne": ""}, ["ACC001"], 1])
    async def test_non_string_account_number(self, client, number, balance):
        response = await client.post("/deposit", json={"accountNumber": number, "amount": 10})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Bad Request",
            "message": "accountNumber must be a string",
        }
        assert await balance("ACC001") == 5000

    async def test_unknown_account(self, client):
        response = await client.post("/deposit", json={"accountNumber": "ACC999", "amount": 10})

        assert response.status_code == 404
        assert response.json()["message"] == "Account ACC999 does not exist"


class TestWithdraw:

    async def test_withdraw(self, client, balance):
        response = await client.post("/withdraw", json={"accountNumber": "ACC001", "amount": 200})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Withdrawal successful"
        assert body["transaction"]["type"] == "WITHDRAWAL"
        assert body["transaction"]["previousBalance"] == 5000
        assert body["transaction"]["newBalance"] == 4800
        assert await balance("ACC001") == 4800

    async def test_insufficient_funds(self, client, balance):
        response = await client.post("/withdraw", json={"accountNumber": "ACC004", "amount": 600})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Insufficient Funds",
            "message": "Insufficient balance in account ACC004",
            "availableBalance": 500,
            "requestedAmount": 600,
            "shortfall": 100,
        }
        assert await balance("ACC004") == 500

    async def test_unknown_account(self, client):
        response = await client.post("/withdraw", json={"accountNumber": "ACC999", "amount": 10})

        assert response.status_code == 404

    @pytest.mark.parametrize("number", [{"$ne": ""}, ["ACC004"]])
    async def test_non_string_account_number(self, client, number, balance):
        response = await client.post("/withdraw", json={"accountNumber": number, "amount": 10})

        assert response.status_code == 400
        assert response.json()["message"] == "accountNumber must be a string"
        assert await balance("ACC004") == 500

    async def test_guarded_withdraw(self, guarded_client, balance):
        ok = await guarded_client.post("/withdraw", json={"accountNumber": "ACC004", "amount": 500})
        short = await guarded_client.post("/withdraw", json={"accountNumber": "ACC004", "amount": 1})

        assert ok.status_code == 200
        assert short.status_code == 400
        assert short.json()["error"] == "Insufficient Funds"
        assert await balance("ACC004") == 0
