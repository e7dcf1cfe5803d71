import pytest

from conftest import OTHER_USER, UNI, USDC, USER, WETH, allocation


def _payload(*allocs, name="Blue chips", wallet=USER):
    return {
        "walletAddress": wallet,
        "name": name,
        "description": "test strategy",
        "targetAllocation": list(allocs),
        "chainId": 1,
    }


@pytest.mark.asyncio
async def test_healthz(client):
    response = await client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
@pytest.mark.parametrize("first", [59.98, 60.02])
async def test_create_accepts_total_within_tolerance(client, first):
    response = await client.post(
        "/api/strategies",
        json=_payload(allocation(UNI, "UNI", first), allocation(USDC, "USDC", 40, 6)),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Strategy created successfully"
    assert body["data"]["id"].startswith("strategy_")
    assert body["data"]["walletAddress"] == USER.lower()
    assert body["data"]["isActive"] is True
    assert body["data"]["isValidAllocation"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("first,total", [(55, "95"), (65, "105")])
async def test_create_rejects_total_off_by_whole_percent(client, repo, first, total):
    response = await client.post(
        "/api/strategies",
        json=_payload(allocation(UNI, "UNI", first), allocation(USDC, "USDC", 40, 6)),
    )

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": f"Total allocation must equal 100%. Current total: {total}%",
    }
    assert repo.docs == []


@pytest.mark.asyncio
async def test_create_requires_wallet_and_name(client):
    no_wallet = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), wallet=None))
    assert no_wallet.status_code == 400
    assert no_wallet.json()["error"] == "Wallet address is required"

    bad_wallet = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), wallet="0x123"))
    assert bad_wallet.status_code == 400
    assert bad_wallet.json()["error"] == "Invalid wallet address format"

    no_name = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), name=""))
    assert no_name.status_code == 400
    assert no_name.json()["error"] == "Strategy name and target allocation are required"

    no_allocs = await client.post("/api/strategies", json=_payload())
    assert no_allocs.status_code == 400
    assert no_allocs.json()["error"] == "Strategy name and target allocation are required"


@pytest.mark.asyncio
async def test_create_rejects_schema_violations(client):
    too_long = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), name="x" * 101))
    assert too_long.status_code == 400
    assert too_long.json()["error"].startswith("Validation error:")

    over_100 = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 150)))
    assert over_100.status_code == 400
    assert over_100.json()["success"] is False


@pytest.mark.asyncio
async def test_list_empty_wallet_returns_zero(client):
    response = await client.get("/api/strategies", params={"walletAddress": OTHER_USER})

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": [], "count": 0}


@pytest.mark.asyncio
async def test_list_requires_wallet(client):
    response = await client.get("/api/strategies")
    assert response.status_code == 400
    assert response.json()["error"] == "Wallet address is required"


@pytest.mark.asyncio
async def test_round_trip_preserves_allocation_order_and_sorts_newest_first(client):
    allocs = [allocation(WETH, "WETH", 40), allocation(UNI, "UNI", 30), allocation(USDC, "USDC", 30, 6)]
    first = await client.post("/api/strategies", json=_payload(*allocs, name="First"))
    second = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), name="Second"))
    assert first.status_code == 201 and second.status_code == 201

    # mixed case lookup finds the lower-cased owner
    response = await client.get("/api/strategies", params={"walletAddress": USER.upper().replace("0X", "0x")})
    body = response.json()

    assert body["count"] == 2
    assert [s["name"] for s in body["data"]] == ["Second", "First"]
    stored = body["data"][1]
    assert [a["token"]["symbol"] for a in stored["targetAllocation"]] == ["WETH", "UNI", "USDC"]
    assert [a["targetPercentage"] for a in stored["targetAllocation"]] == [40, 30, 30]
    assert stored["totalPercentage"] == 100
    assert stored["driftThreshold"] == 5
    assert stored["autoRebalance"] is False


@pytest.mark.asyncio
async def test_delete_by_other_wallet_is_not_found(client, repo):
    created = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100)))
    strategy_id = created.json()["data"]["id"]

    response = await client.request("DELETE", f"/api/strategies/{strategy_id}", json={"walletAddress": OTHER_USER})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Strategy not found or access denied"}
    assert len(repo.docs) == 1


@pytest.mark.asyncio
async def test_delete_by_owner_removes_strategy(client, repo):
    created = await client.post("/api/strategies", json=_payload(allocation(UNI, "UNI", 100), name="Gone"))
    strategy_id = created.json()["data"]["id"]

    response = await client.request("DELETE", f"/api/strategies/{strategy_id}", json={"walletAddress": USER})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["id"] == strategy_id
    assert body["data"]["name"] == "Gone"
    assert repo.docs == []

    again = await client.request("DELETE", f"/api/strategies/{strategy_id}", json={"walletAddress": USER})
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_delete_without_wallet_is_rejected(client):
    response = await client.delete("/api/strategies/strategy_1_abc")
    assert response.status_code == 400
    assert response.json()["error"] == "Wallet address is required"


@pytest.mark.asyncio
async def test_presets_resolve_addresses_for_chain(client):
    response = await client.get("/api/strategies/presets", params={"chainId": 42161})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    blue_chip = next(p for p in body["data"] if p["id"] == "defi-blue-chip")
    weth = blue_chip["targetAllocation"][0]["token"]
    assert weth["symbol"] == "WETH"
    assert weth["address"].lower() == "0x82af49447d8a07e3bd95bd0d56f35241523fbab1"


@pytest.mark.asyncio
async def test_presets_unsupported_chain_is_empty(client):
    response = await client.get("/api/strategies/presets", params={"chainId": 56})
    assert response.json()["count"] == 0
