from __future__ import annotations

from .utils import error_code, http_get_json, http_post_json

HUNDRED = 100 * 10 ** 18
THOUSAND = 1000 * 10 ** 18


def _fund(base: str, owner: str, user: str, farm_address: str) -> None:
    status, _, raw = http_post_json(base, "/tokens/LPT/mint", {"caller": owner, "to": user, "amount": THOUSAND})
    assert status == 200, f"{status}: {raw[:300]}"
    status, _, raw = http_post_json(
        base, "/tokens/LPT/approve", {"caller": user, "spender": farm_address, "amount": THOUSAND}
    )
    assert status == 200, f"{status}: {raw[:300]}"


def test_deposit_distribute_claim_withdraw(token_farm_url: str, owner_address: str, fresh_address: str):
    farm = http_get_json(token_farm_url, "/farm")
    _fund(token_farm_url, owner_address, fresh_address, farm["address"])

    status, body, raw = http_post_json(token_farm_url, "/farm/deposit", {"caller": fresh_address, "amount": HUNDRED})
    assert status == 200, f"{status}: {raw[:300]}"
    assert body["staking_balance"] == HUNDRED

    # Settle everyone up to now so our checkpoint is the only thing that matters.
    status, _, raw = http_post_json(token_farm_url, "/farm/distribute", {"caller": owner_address})
    assert status == 200, f"{status}: {raw[:300]}"
    status, _, _ = http_post_json(token_farm_url, "/chain/mine", {"blocks": 1})
    assert status == 200
    status, _, raw = http_post_json(token_farm_url, "/farm/distribute", {"caller": owner_address})
    assert status == 200, f"{status}: {raw[:300]}"

    p = http_get_json(token_farm_url, f"/farm/participants/{fresh_address}")
    assert p["pending_rewards"] >= HUNDRED // 100

    pending = p["pending_rewards"]
    status, body, raw = http_post_json(token_farm_url, "/farm/claim", {"caller": fresh_address})
    assert status == 200, f"{status}: {raw[:300]}"
    assert body["claimed"] == pending

    status, body, _ = http_post_json(token_farm_url, "/farm/claim", {"caller": fresh_address})
    assert status == 409
    assert error_code(body) == "nothing_to_claim"

    status, body, raw = http_post_json(token_farm_url, "/farm/withdraw", {"caller": fresh_address})
    assert status == 200, f"{status}: {raw[:300]}"
    assert body["withdrawn"] == HUNDRED

    bal = http_get_json(token_farm_url, f"/tokens/LPT/balances/{fresh_address}")
    assert bal["balance"] == THOUSAND


def test_non_owner_cannot_distribute(token_farm_url: str, fresh_address: str):
    status, body, _ = http_post_json(token_farm_url, "/farm/distribute", {"caller": fresh_address})
    assert status == 403
    assert error_code(body) == "unauthorized"
