"""Tests for owner authorization."""

import httpx
import pytest

from app.engine.authorizer import OwnerAuthorizer
from app.models.enums import AuthOutcome
from app.providers.identity import IdentityServiceClient

from tests.conftest import OWNER_KEY


def identity_client(handler) -> IdentityServiceClient:
    return IdentityServiceClient("https://identity.test", transport=httpx.MockTransport(handler))


class TestLocalCheck:
    @pytest.mark.asyncio
    async def test_matching_key(self):
        result = await OwnerAuthorizer(OWNER_KEY).authorize(OWNER_KEY)
        assert result.authorized
        assert result.reason == "local_match"

    @pytest.mark.asyncio
    async def test_mismatched_key(self):
        result = await OwnerAuthorizer(OWNER_KEY).authorize("someone-else")
        assert result.outcome == AuthOutcome.UNAUTHORIZED
        assert result.reason == "credential_mismatch"

    @pytest.mark.asyncio
    async def test_prefix_of_key_rejected(self):
        result = await OwnerAuthorizer(OWNER_KEY).authorize(OWNER_KEY[:-1])
        assert result.outcome == AuthOutcome.UNAUTHORIZED


class TestMissingOwnerKey:
    @pytest.mark.asyncio
    async def test_fail_closed(self):
        authorizer = OwnerAuthorizer(None, mode="fail_closed")
        result = await authorizer.authorize("anything")
        assert result.outcome == AuthOutcome.MISCONFIGURED
        assert authorizer.protection == "misconfigured"

    @pytest.mark.asyncio
    async def test_fail_open(self):
        authorizer = OwnerAuthorizer("", mode="fail_open")
        result = await authorizer.authorize("anything")
        assert result.authorized
        assert result.reason == "fail_open"
        assert authorizer.protection == "disabled"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            OwnerAuthorizer(OWNER_KEY, mode="maybe")

    def test_protection_enabled(self):
        assert OwnerAuthorizer(OWNER_KEY).protection == "enabled"


class TestIdentityService:
    @pytest.mark.asyncio
    async def test_confirmed(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"user_id": "usr_1", "email": "owner@example.com"})

        client = identity_client(handler)
        result = await OwnerAuthorizer(OWNER_KEY, identity_client=client).authorize(OWNER_KEY)
        await client.aclose()

        assert result.authorized
        assert result.reason == "identity_confirmed"
        assert seen[0].url.path == "/v1/users/me"
        assert seen[0].headers["x-api-key"] == OWNER_KEY

    @pytest.mark.asyncio
    async def test_rejected_upstream(self):
        client = identity_client(lambda request: httpx.Response(401, json={"error": "revoked"}))
        result = await OwnerAuthorizer(OWNER_KEY, identity_client=client).authorize(OWNER_KEY)
        await client.aclose()

        assert result.outcome == AuthOutcome.UNAUTHORIZED
        assert result.reason == "identity_rejected"

    @pytest.mark.asyncio
    async def test_unreachable_is_distinguished_from_mismatch(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = identity_client(handler)
        result = await OwnerAuthorizer(OWNER_KEY, identity_client=client).authorize(OWNER_KEY)
        await client.aclose()

        assert result.outcome == AuthOutcome.UNAUTHORIZED
        assert result.reason == "identity_unreachable"

    @pytest.mark.asyncio
    async def test_non_json_body_counts_as_unreachable(self):
        client = identity_client(lambda request: httpx.Response(200, text="<html>"))
        result = await OwnerAuthorizer(OWNER_KEY, identity_client=client).authorize(OWNER_KEY)
        await client.aclose()

        assert result.reason == "identity_unreachable"

    @pytest.mark.asyncio
    async def test_mismatch_never_calls_identity_service(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={})

        client = identity_client(handler)
        result = await OwnerAuthorizer(OWNER_KEY, identity_client=client).authorize("wrong")
        await client.aclose()

        assert result.reason == "credential_mismatch"
        assert calls == []
