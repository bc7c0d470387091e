"""
Tests for the token model and the in-memory repository extras.
"""

import base64
from datetime import datetime, timedelta, timezone

import pytest

from sentinel_oauth.errors import ErrorCode, TokenValidationError
from sentinel_oauth.tokenstore import (
    AccessToken,
    AuthorizationCode,
    MemoryTokenRepository,
    TokenKind,
    generate_token_id,
)

from factories import make_access_token, make_authorization_code, make_refresh_token


class TestTokenModel:
    """Identifiers, equality and hash mapping."""

    def test_identifier_encodes_binding(self):
        token_id = generate_token_id("c1", "http://localhost", "u1", "abc")

        assert base64.urlsafe_b64decode(token_id).decode("utf-8") == "c1:http://localhost:u1:abc"

    def test_identifier_is_derived_when_missing(self):
        code = make_authorization_code(code="abc")

        assert code.id == generate_token_id("c1", "http://localhost", "u1", "abc")

    def test_equality_is_by_kind_and_identifier(self):
        first = make_access_token(token="t1", ticket="a")
        second = make_access_token(token="t1", ticket="b")

        assert first == second
        assert len({first, second}) == 1
        assert make_refresh_token(token="t1") != first

    def test_naive_datetimes_are_taken_as_utc(self):
        token = AccessToken(client_id="c1", redirect_uri="r", subject="u1", token="t",
                            created=datetime(2030, 1, 1, 12, 0), valid_to=datetime(2030, 1, 1, 13, 0))

        assert token.valid_to.tzinfo == timezone.utc
        assert token.is_active(datetime(2030, 1, 1, 12, 59, tzinfo=timezone.utc))
        assert not token.is_active(datetime(2030, 1, 1, 13, 0, tzinfo=timezone.utc))

    def test_hash_mapping_round_trip(self):
        code = make_authorization_code(ticket="ticket-data")

        entries = code.to_hash()
        restored = AuthorizationCode.from_hash(entries)

        assert entries["code"] == code.code
        assert all(isinstance(value, str) for value in entries.values())
        assert restored.valid_to == code.valid_to
        assert restored.ticket == "ticket-data"

    def test_hash_mapping_accepts_bytes(self):
        token = make_access_token()
        entries = {key.encode(): value.encode() for key, value in token.to_hash().items()}

        restored = AccessToken.from_hash({key.decode(): value for key, value in entries.items()})

        assert restored.token == token.token
        assert restored.client_id == token.client_id

    def test_empty_ticket_is_absent(self):
        token = make_access_token(ticket=None)

        assert AccessToken.from_hash(token.to_hash()).ticket is None

    def test_validation_error_details(self):
        code = make_authorization_code(ticket="")

        with pytest.raises(TokenValidationError) as exc_info:
            code.validate()

        assert exc_info.value.code == ErrorCode.MISSING_PARAMETER
        assert exc_info.value.missing_fields == ["ticket"]
        assert exc_info.value.to_dict()["metadata"]["token_id"] == code.id


class TestMemoryTokenRepository:
    """Operations only the in-memory repository offers."""

    @pytest.mark.asyncio
    async def test_expired_tokens_stay_until_cleanup(self, now):
        repository = MemoryTokenRepository()
        token = make_access_token(valid_to=now - timedelta(seconds=1))
        await repository.insert_access_token(token)

        assert await repository.get_access_tokens(now) == []
        assert await repository.count(TokenKind.ACCESS_TOKEN) == 1

        assert await repository.delete_access_tokens(now) == 1
        assert await repository.count(TokenKind.ACCESS_TOKEN) == 0

    @pytest.mark.asyncio
    async def test_clear(self):
        repository = MemoryTokenRepository()
        await repository.insert_access_token(make_access_token())
        await repository.insert_refresh_token(make_refresh_token())

        assert await repository.clear() == 2
        assert await repository.count(TokenKind.REFRESH_TOKEN) == 0

    @pytest.mark.asyncio
    async def test_repositories_do_not_share_state(self, now):
        first = MemoryTokenRepository()
        second = MemoryTokenRepository()

        await first.insert_access_token(make_access_token())

        assert await second.get_access_tokens(now) == []
