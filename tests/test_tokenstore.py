"""
Behaviour shared by every token repository backend.
"""

import asyncio
from datetime import timedelta

import pytest

from sentinel_oauth.errors import TokenValidationError
from sentinel_oauth.tokenstore import AuthorizationCode, TokenKind

from factories import make_access_token, make_authorization_code, make_refresh_token


class TestAuthorizationCodes:
    """Authorization code storage and redemption."""

    @pytest.mark.asyncio
    async def test_insert_get_delete_scenario(self, repository, now):
        code = make_authorization_code(code="abc", client_id="c1", subject="u1",
                                       valid_to=now + timedelta(seconds=60))

        inserted = await repository.insert_authorization_code(code)
        assert inserted == code

        codes = await repository.get_authorization_codes("http://localhost", now)
        assert len(codes) == 1
        assert codes[0].code == "abc"
        assert codes[0].client_id == "c1"

        assert await repository.delete_authorization_code(codes[0]) is True

        codes = await repository.get_authorization_codes("http://localhost", now)
        assert codes == []

    @pytest.mark.asyncio
    async def test_round_trip_preserves_fields(self, repository, now):
        code = make_authorization_code(ticket="eyJjbGFpbXMiOltdfQ", valid_to=now + timedelta(minutes=5))
        await repository.insert_authorization_code(code)

        stored = await repository.get_authorization_code(code.id)

        assert stored.id == code.id
        assert stored.code == code.code
        assert stored.client_id == code.client_id
        assert stored.redirect_uri == code.redirect_uri
        assert stored.subject == code.subject
        assert stored.ticket == "eyJjbGFpbXMiOltdfQ"
        assert stored.created == code.created
        assert stored.valid_to == code.valid_to

    @pytest.mark.asyncio
    async def test_round_trip_with_created_cutoff(self, repository):
        code = make_authorization_code()
        await repository.insert_authorization_code(code)

        codes = await repository.get_authorization_codes(code.redirect_uri, code.created)
        assert codes == [code]

        await repository.delete_authorization_code(code)

        assert await repository.get_authorization_code(code.id) is None
        assert await repository.get_authorization_codes(code.redirect_uri, code.created) == []

    @pytest.mark.asyncio
    async def test_redirect_uri_filter_is_exact(self, repository, now):
        await repository.insert_authorization_code(
            make_authorization_code(code="a", redirect_uri="http://localhost/callback")
        )

        assert len(await repository.get_authorization_codes("http://localhost/callback", now)) == 1
        assert await repository.get_authorization_codes("http://localhost/callback/", now) == []
        assert await repository.get_authorization_codes("http://localhost/Callback", now) == []
        assert await repository.get_authorization_codes("http://localhost", now) == []

    @pytest.mark.asyncio
    async def test_expiry_boundary_is_strict(self, repository, now):
        valid_to = now + timedelta(seconds=30)
        code = make_authorization_code(valid_to=valid_to)
        await repository.insert_authorization_code(code)

        assert await repository.get_authorization_codes(code.redirect_uri, valid_to) == []
        assert await repository.get_authorization_codes(code.redirect_uri, valid_to - timedelta(seconds=1)) == [code]

        # Still reachable by identifier until physically removed
        assert await repository.get_authorization_code(code.id) == code

    @pytest.mark.asyncio
    async def test_delete_twice_reports_absence(self, repository):
        code = make_authorization_code()
        await repository.insert_authorization_code(code)

        assert await repository.delete_authorization_code(code) is True
        assert await repository.delete_authorization_code(code) is False

    @pytest.mark.asyncio
    async def test_concurrent_redemption_succeeds_once(self, repository, now):
        await repository.insert_authorization_code(make_authorization_code())

        async def redeem():
            codes = await repository.get_authorization_codes("http://localhost", now)
            if not codes:
                return False
            return await repository.delete_authorization_code(codes[0])

        results = await asyncio.gather(*(redeem() for _ in range(5)))

        assert results.count(True) == 1

    @pytest.mark.asyncio
    async def test_missing_ticket_is_rejected(self, repository, now):
        code = make_authorization_code(ticket=None)

        with pytest.raises(TokenValidationError) as exc_info:
            await repository.insert_authorization_code(code)

        assert "ticket" in exc_info.value.missing_fields
        assert await repository.get_authorization_codes("http://localhost", now) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field_name", ["client_id", "redirect_uri", "subject", "valid_to"])
    async def test_missing_mandatory_field_is_rejected(self, repository, now, field_name):
        code = make_authorization_code(id="explicit-id")
        setattr(code, field_name, None)

        with pytest.raises(TokenValidationError) as exc_info:
            await repository.insert_authorization_code(code)

        assert field_name in exc_info.value.missing_fields
        assert await repository.get_authorization_code("explicit-id") is None

    @pytest.mark.asyncio
    async def test_missing_code_value_is_rejected(self, repository):
        code = AuthorizationCode(client_id="c1", redirect_uri="http://localhost", subject="u1",
                                 ticket="t", valid_to=make_authorization_code().valid_to)

        with pytest.raises(TokenValidationError):
            await repository.insert_authorization_code(code)

    @pytest.mark.asyncio
    async def test_delete_expired_codes(self, repository, now):
        soon = make_authorization_code(code="soon", valid_to=now + timedelta(seconds=10))
        later = make_authorization_code(code="later", valid_to=now + timedelta(minutes=10))
        await repository.insert_authorization_code(soon)
        await repository.insert_authorization_code(later)

        removed = await repository.delete_authorization_codes(now + timedelta(seconds=10))

        assert removed == 1
        assert await repository.get_authorization_codes("http://localhost", now) == [later]


class TestAccessAndRefreshTokens:
    """Access and refresh token storage."""

    @pytest.mark.asyncio
    async def test_access_tokens_without_redirect_filter(self, repository, now):
        await repository.insert_access_token(make_access_token(token="t1", client_id="c1"))
        await repository.insert_access_token(make_access_token(token="t2", client_id="c2",
                                                               redirect_uri="https://other.example"))

        tokens = await repository.get_access_tokens(now)

        assert sorted(token.token for token in tokens) == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_access_tokens_with_exact_redirect_filter(self, repository, now):
        await repository.insert_access_token(make_access_token(token="t1"))
        await repository.insert_access_token(make_access_token(token="t2", redirect_uri="http://localhost/"))

        tokens = await repository.get_access_tokens(now, redirect_uri="http://localhost")

        assert [token.token for token in tokens] == ["t1"]

    @pytest.mark.asyncio
    async def test_access_token_delete(self, repository, now):
        first = make_access_token(token="t1", client_id="NUnit")
        second = make_access_token(token="t1", client_id="NUnit2")
        await repository.insert_access_token(first)
        await repository.insert_access_token(second)

        assert await repository.delete_access_token(first) is True

        remaining = await repository.get_access_tokens(now)
        assert remaining == [second]

    @pytest.mark.asyncio
    async def test_access_token_ticket_is_optional(self, repository, now):
        token = make_access_token(ticket=None)

        assert await repository.insert_access_token(token) == token

    @pytest.mark.asyncio
    async def test_refresh_token_redemption(self, repository, now):
        token = make_refresh_token()
        await repository.insert_refresh_token(token)

        tokens = await repository.get_refresh_tokens(now, redirect_uri="http://localhost")
        assert tokens == [token]
        assert tokens[0].kind == TokenKind.REFRESH_TOKEN

        assert await repository.delete_refresh_token(tokens[0]) is True
        assert await repository.get_refresh_token(token.id) is None
        assert await repository.get_refresh_tokens(now) == []

    @pytest.mark.asyncio
    async def test_delete_expired_tokens(self, repository, now):
        await repository.insert_access_token(make_access_token(token="old", valid_to=now + timedelta(seconds=5)))
        await repository.insert_refresh_token(make_refresh_token(token="old", valid_to=now + timedelta(seconds=5)))

        assert await repository.delete_access_tokens(now + timedelta(seconds=5)) == 1
        assert await repository.delete_refresh_tokens(now + timedelta(seconds=5)) == 1
        assert await repository.get_access_tokens(now) == []
        assert await repository.get_refresh_tokens(now) == []

    @pytest.mark.asyncio
    async def test_changing_returned_tokens_leaves_stored_state(self, repository, now):
        token = make_access_token()
        await repository.insert_access_token(token)
        token.redirect_uri = "https://changed.example"

        fetched = await repository.get_access_token(token.id)
        fetched.valid_to = None
        for active in await repository.get_access_tokens(now):
            active.valid_to = None

        tokens = await repository.get_access_tokens(now, redirect_uri="http://localhost")
        assert tokens == [token]
        assert tokens[0].valid_to is not None
        assert (await repository.get_access_token(token.id)).redirect_uri == "http://localhost"

    @pytest.mark.asyncio
    async def test_kinds_are_isolated(self, repository, now):
        await repository.insert_access_token(make_access_token(token="same"))

        assert await repository.get_refresh_tokens(now) == []
        assert await repository.get_authorization_codes("http://localhost", now) == []
