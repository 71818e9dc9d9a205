import asyncio

import pytest

from backend.auth.tokens import RESET_PREFIX, RESET_TOKEN_TTL_MS, ResetTokenStore, TokenService


def test_new_tokens_are_unique_and_url_safe():
    service = TokenService()
    tokens = {service.new_token() for _ in range(50)}

    assert len(tokens) == 50
    assert all(set(t) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_") for t in tokens)


@pytest.mark.asyncio
async def test_issue_stores_account_id_under_prefixed_key(kv, reset_tokens):
    token = await reset_tokens.issue(42)

    key = RESET_PREFIX + token
    assert key.startswith("reset:")
    assert kv.data[key][0] == "42"
    assert kv.ttls[key] == 259_200_000


@pytest.mark.asyncio
async def test_redeem_is_single_use(reset_tokens):
    token = await reset_tokens.issue(7)

    assert await reset_tokens.redeem(token) == 7
    assert await reset_tokens.redeem(token) is None


@pytest.mark.asyncio
async def test_redeem_unknown_or_empty_token(reset_tokens):
    assert await reset_tokens.redeem("missing") is None
    assert await reset_tokens.redeem("") is None


@pytest.mark.asyncio
async def test_expired_token_cannot_be_redeemed(kv, reset_tokens):
    token = await reset_tokens.issue(7)
    kv.expire(RESET_PREFIX + token)

    assert await reset_tokens.redeem(token) is None


@pytest.mark.asyncio
async def test_concurrent_redemption_has_one_winner(reset_tokens):
    token = await reset_tokens.issue(3)

    results = await asyncio.gather(*(reset_tokens.redeem(token) for _ in range(5)))

    assert sorted(results, key=lambda r: r is None) == [3, None, None, None, None]


@pytest.mark.asyncio
async def test_tokens_for_same_account_coexist(reset_tokens):
    first = await reset_tokens.issue(9)
    second = await reset_tokens.issue(9)

    assert await reset_tokens.redeem(first) == 9
    assert await reset_tokens.redeem(second) == 9


@pytest.mark.asyncio
async def test_malformed_value_is_discarded(kv):
    store = ResetTokenStore(kv)
    await kv.put(RESET_PREFIX + "abc", "not-a-number", 1000)

    assert await store.redeem("abc") is None
    assert kv.keys(RESET_PREFIX) == []


def test_reset_tokens_live_exactly_three_days():
    assert RESET_TOKEN_TTL_MS == 259_200_000
