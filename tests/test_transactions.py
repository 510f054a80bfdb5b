from datetime import UTC, datetime

import pytest
from sqlalchemy import select

from fintrack.models import Transaction, TransactionType


def _payload(**overrides):
    body = {"amount": 25.5, "type": "expense", "description": "Groceries", "category": "food"}
    body.update(overrides)
    return body


@pytest.mark.anyio("asyncio")
async def test_create_transaction(client, register_user):
    account = await register_user()

    resp = await client.post(
        "/transactions",
        headers=account["headers"],
        json=_payload(date="2026-03-05", tags=["weekly"], notes="market"),
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["amount"] == 25.5
    assert data["formattedAmount"] == -25.5
    assert data["type"] == "expense"
    assert data["userId"] == account["user"]["id"]
    assert data["tags"] == ["weekly"]
    assert data["date"].startswith("2026-03-05T00:00:00")


@pytest.mark.anyio("asyncio")
async def test_create_transaction_defaults_date_to_now(client, register_user):
    account = await register_user()
    before = datetime.now(tz=UTC)

    resp = await client.post("/transactions", headers=account["headers"], json=_payload(type="income"))
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert datetime.fromisoformat(data["date"]) >= before.replace(microsecond=0)
    assert data["formattedAmount"] == 25.5


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    "override, field",
    [
        ({"amount": 0}, "amount"),
        ({"amount": -5}, "amount"),
        ({"type": "transfer"}, "type"),
        ({"description": "   "}, "description"),
        ({"category": ""}, "category"),
    ],
)
async def test_create_transaction_validation(client, register_user, override, field):
    account = await register_user()

    resp = await client.post("/transactions", headers=account["headers"], json=_payload(**override))
    assert resp.status_code == 400
    assert field in {item["field"] for item in resp.json()["error"]["details"]}


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    "sent, stored",
    [(10.555, 10.56), (0.30000000000000004, 0.3), ("19.999", 20.0)],
)
async def test_amount_rounded_to_cents(client, register_user, sent, stored):
    account = await register_user()

    created = await client.post("/transactions", headers=account["headers"], json=_payload(amount=sent))
    assert created.status_code == 201
    assert created.json()["data"]["amount"] == stored

    tx_id = created.json()["data"]["id"]
    updated = await client.put(f"/transactions/{tx_id}", headers=account["headers"], json={"amount": sent})
    assert updated.status_code == 200
    assert updated.json()["data"]["amount"] == stored


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize("sent", [0.004, 1e30, -1e30])
async def test_amount_out_of_range_rejected(client, register_user, sent):
    account = await register_user()

    resp = await client.post("/transactions", headers=account["headers"], json=_payload(amount=sent))
    assert resp.status_code == 400
    assert resp.json()["error"]["details"][0]["field"] == "amount"


@pytest.mark.anyio("asyncio")
async def test_transactions_require_auth(client):
    resp = await client.post("/transactions", json=_payload())
    assert resp.status_code == 401


@pytest.mark.anyio("asyncio")
async def test_get_update_delete_own_transaction(client, db_session, register_user):
    account = await register_user()
    created = (await client.post("/transactions", headers=account["headers"], json=_payload())).json()["data"]
    tx_id = created["id"]

    fetched = await client.get(f"/transactions/{tx_id}", headers=account["headers"])
    assert fetched.status_code == 200
    assert fetched.json()["data"]["description"] == "Groceries"

    updated = await client.put(
        f"/transactions/{tx_id}",
        headers=account["headers"],
        json={"amount": 30, "category": "groceries", "userId": 999},
    )
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["amount"] == 30.0
    assert data["category"] == "groceries"
    assert data["description"] == "Groceries"
    assert data["userId"] == account["user"]["id"]

    deleted = await client.delete(f"/transactions/{tx_id}", headers=account["headers"])
    assert deleted.status_code == 200
    assert deleted.json()["data"]["id"] == tx_id

    missing = await client.get(f"/transactions/{tx_id}", headers=account["headers"])
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "TRANSACTION_NOT_FOUND"

    db_session.expire_all()
    assert db_session.get(Transaction, tx_id) is None


@pytest.mark.anyio("asyncio")
async def test_update_rejects_null_for_required_field(client, register_user):
    account = await register_user()
    created = (await client.post("/transactions", headers=account["headers"], json=_payload())).json()["data"]

    resp = await client.put(f"/transactions/{created['id']}", headers=account["headers"], json={"amount": None})
    assert resp.status_code == 400


@pytest.mark.anyio("asyncio")
async def test_other_users_transaction_looks_missing(client, db_session, register_user):
    owner = await register_user()
    intruder = await register_user()
    created = (await client.post("/transactions", headers=owner["headers"], json=_payload())).json()["data"]
    tx_id = created["id"]

    get_resp = await client.get(f"/transactions/{tx_id}", headers=intruder["headers"])
    put_resp = await client.put(f"/transactions/{tx_id}", headers=intruder["headers"], json={"amount": 1})
    del_resp = await client.delete(f"/transactions/{tx_id}", headers=intruder["headers"])
    absent = await client.get("/transactions/987654", headers=intruder["headers"])

    for resp in (get_resp, put_resp, del_resp):
        assert resp.status_code == 404
        assert resp.json() == absent.json()

    db_session.expire_all()
    stored = db_session.get(Transaction, tx_id)
    assert stored is not None
    assert float(stored.amount) == 25.5


@pytest.mark.anyio("asyncio")
async def test_list_filters_and_search(client, register_user, make_transaction):
    account = await register_user()
    user_id = account["user"]["id"]
    make_transaction(user_id, amount="100", type=TransactionType.INCOME, category="salary", description="Salary March",
                     date=datetime(2026, 3, 1, tzinfo=UTC))
    make_transaction(user_id, amount="12.5", category="food", description="Coffee beans",
                     date=datetime(2026, 3, 10, tzinfo=UTC))
    make_transaction(user_id, amount="40", category="food", description="Lunch 100%_deal",
                     date=datetime(2026, 4, 2, tzinfo=UTC))

    headers = account["headers"]

    by_type = (await client.get("/transactions", headers=headers, params={"type": "income"})).json()
    assert [row["description"] for row in by_type["data"]] == ["Salary March"]

    by_range = (
        await client.get("/transactions", headers=headers, params={"startDate": "2026-03-05", "endDate": "2026-03-31"})
    ).json()
    assert [row["description"] for row in by_range["data"]] == ["Coffee beans"]

    search = (await client.get("/transactions", headers=headers, params={"search": "COFFEE"})).json()
    assert [row["description"] for row in search["data"]] == ["Coffee beans"]

    wildcard = (await client.get("/transactions", headers=headers, params={"search": "%_"})).json()
    assert [row["description"] for row in wildcard["data"]] == ["Lunch 100%_deal"]

    combined = (
        await client.get("/transactions", headers=headers, params={"category": "food", "sortBy": "amount", "sortOrder": "asc"})
    ).json()
    assert [row["amount"] for row in combined["data"]] == [12.5, 40.0]


@pytest.mark.anyio("asyncio")
async def test_list_only_returns_callers_transactions(client, register_user, make_transaction):
    mine = await register_user()
    theirs = await register_user()
    make_transaction(mine["user"]["id"], description="mine")
    make_transaction(theirs["user"]["id"], description="theirs")

    body = (await client.get("/transactions", headers=mine["headers"])).json()
    assert [row["description"] for row in body["data"]] == ["mine"]
    assert body["pagination"]["total"] == 1


@pytest.mark.anyio("asyncio")
async def test_pagination_pages_concatenate_to_full_listing(client, register_user, make_transaction):
    account = await register_user()
    same_day = datetime(2026, 2, 14, 12, tzinfo=UTC)
    ids = {make_transaction(account["user"]["id"], amount=str(n + 1), date=same_day).id for n in range(7)}

    seen = []
    for page in (1, 2, 3):
        body = (
            await client.get("/transactions", headers=account["headers"], params={"page": page, "limit": 3})
        ).json()
        assert body["pagination"] == {"page": page, "limit": 3, "total": 7, "pages": 3}
        seen.extend(row["id"] for row in body["data"])

    assert len(seen) == 7
    assert set(seen) == ids

    beyond = (
        await client.get("/transactions", headers=account["headers"], params={"page": 9, "limit": 3})
    ).json()
    assert beyond["data"] == []
    assert beyond["pagination"]["total"] == 7


@pytest.mark.anyio("asyncio")
async def test_list_empty_has_zero_pages(client, register_user):
    account = await register_user()

    body = (await client.get("/transactions", headers=account["headers"])).json()
    assert body["data"] == []
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 0, "pages": 0}


@pytest.mark.anyio("asyncio")
async def test_list_limit_is_capped(client, register_user):
    account = await register_user()

    body = (await client.get("/transactions", headers=account["headers"], params={"limit": 5000})).json()
    assert body["pagination"]["limit"] == 100


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    "params",
    [{"sortBy": "password"}, {"sortOrder": "sideways"}, {"startDate": "yesterday"}, {"page": 0}],
)
async def test_list_rejects_bad_query(client, register_user, params):
    account = await register_user()

    resp = await client.get("/transactions", headers=account["headers"], params=params)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio("asyncio")
async def test_deleting_user_row_cascades_to_transactions(db_session, make_user, make_transaction):
    user = make_user()
    make_transaction(user.id)
    db_session.delete(user)
    db_session.flush()

    remaining = db_session.scalars(select(Transaction).where(Transaction.user_id == user.id)).all()
    assert remaining == []
