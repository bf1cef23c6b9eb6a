"""
Tests for the /accounts routes
"""
import json

import pytest


class TestListAccounts:

    async def test_list_sample_accounts(self, client):
        response = await client.get("/accounts")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Accounts retrieved successfully"
        assert body["count"] == 4
        assert [a["accountNumber"] for a in body["accounts"]] == ["ACC001", "ACC002", "ACC003", "ACC004"]
        for account in body["accounts"]:
            assert "_id" not in account
            assert account["currency"] == "USD"
            assert account["status"] == "active"


class TestGetAccount:

    async def test_get_account(self, client):
        response = await client.get("/accounts/ACC003")

        assert response.status_code == 200
        account = response.json()["account"]
        assert account["accountHolder"] == "Bob Wilson"
        assert account["email"] == "bob@example.com"
        assert account["balance"] == 2500
        assert "createdAt" in account
        assert "lastTransaction" not in account

    async def test_unknown_account(self, client):
        response = await client.get("/accounts/ACC999")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found", "message": "Account ACC999 does not exist"}

    async def test_account_is_cached(self, client, fake_redis):
        await client.get("/accounts/ACC001")

        cached = json.loads(fake_redis.data["account:number:ACC001"])
        assert cached["balance"] == 5000

    async def test_cached_copy_is_served(self, client, fake_redis):
        fake_redis.data["account:number:ACC001"] = json.dumps({"accountNumber": "ACC001", "balance": 1})

        response = await client.get("/accounts/ACC001")

        assert response.json()["account"]["balance"] == 1

    async def test_balance_change_invalidates_cache(self, client, fake_redis):
        await client.get("/accounts/ACC001")
        await client.get("/accounts/ACC002")

        await client.post("/transfer", json={"fromAccount": "ACC001", "toAccount": "ACC002", "amount": 100})

        assert "account:number:ACC001" not in fake_redis.data
        assert "account:number:ACC002" not in fake_redis.data
        response = await client.get("/accounts/ACC001")
        assert response.json()["account"]["balance"] == 4900


class TestCreateAccount:

    async def test_create_account(self, client, store):
        response = await client.post("/accounts", json={
            "accountNumber": "ACC005",
            "accountHolder": "Carol King",
            "email": "carol@example.com",
            "initialBalance": 750,
        })

        assert response.status_code == 201
        assert response.json() == {
            "message": "Account created successfully",
            "account": {"accountNumber": "ACC005", "accountHolder": "Carol King", "balance": 750},
        }
        created = await store.get("ACC005")
        assert created.status == "active"
        assert created.currency == "USD"

    @pytest.mark.parametrize("initial", [None, 0])
    async def test_initial_balance_defaults_to_zero(self, client, initial):
        body = {"accountNumber": "ACC006", "accountHolder": "Dan Lee", "email": "dan@example.com"}
        if initial is not None:
            body["initialBalance"] = initial

        response = await client.post("/accounts", json=body)

        assert response.status_code == 201
        assert response.json()["account"]["balance"] == 0

    async def test_duplicate_account(self, client):
        response = await client.post("/accounts", json={
            "accountNumber": "ACC001", "accountHolder": "Someone", "email": "x@example.com",
        })

        assert response.status_code == 409
        assert response.json() == {"error": "Conflict", "message": "Account ACC001 already exists"}

    @pytest.mark.parametrize("missing", ["accountNumber", "accountHolder", "email"])
    async def test_missing_fields(self, client, missing):
        body = {"accountNumber": "ACC007", "accountHolder": "Eve", "email": "eve@example.com"}
        del body[missing]

        response = await client.post("/accounts", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "accountNumber, accountHolder, and email are required"

    @pytest.mark.parametrize("initial", [-10, "100", True])
    async def test_invalid_initial_balance(self, client, initial):
        response = await client.post("/accounts", json={
            "accountNumber": "ACC008", "accountHolder": "Fay", "email": "fay@example.com",
            "initialBalance": initial,
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Bad Request"

    async def test_created_account_can_receive_transfer(self, client):
        await client.post("/accounts", json={
            "accountNumber": "ACC009", "accountHolder": "Gus", "email": "gus@example.com",
        })

        response = await client.post("/transfer", json={
            "fromAccount": "ACC003", "toAccount": "ACC009", "amount": 2500,
        })

        assert response.status_code == 200
        assert response.json()["transaction"]["receiver"]["balanceAfter"] == 2500
