"""Tests for OAuth2Token."""

from datetime import UTC, datetime, timedelta

from core.oauth2.models import OAuth2Token


def _token(expires_in: timedelta) -> OAuth2Token:
    return OAuth2Token(
        access_token="eyJ0eXAi",
        token_type="Bearer",
        expires_at=datetime.now(UTC) + expires_in,
    )


class TestOAuth2Token:

    def test_from_expires_on(self):
        token = OAuth2Token.from_expires_on(
            "eyJ0eXAi",
            1_900_000_000,
            scope="https://mycluster.kusto.windows.net/.default",
        )

        assert token.access_token == "eyJ0eXAi"
        assert token.token_type == "Bearer"
        assert token.expires_at == datetime.fromtimestamp(1_900_000_000, UTC)
        assert token.scope == "https://mycluster.kusto.windows.net/.default"

    def test_from_lifetime(self):
        token = OAuth2Token.from_lifetime("abc", 1800)

        assert token.scope is None
        assert not token.is_expired(buffer_seconds=1700)
        assert token.is_expired(buffer_seconds=1900)

    def test_fresh_token_not_expired(self):
        assert not _token(timedelta(hours=1)).is_expired()

    def test_token_inside_buffer_counts_as_expired(self):
        token = _token(timedelta(minutes=4))

        assert token.is_expired(buffer_seconds=300)
        assert not token.is_expired(buffer_seconds=0)

    def test_past_expiry(self):
        token = _token(timedelta(minutes=-1))

        assert token.is_expired()
        assert token.is_expired(buffer_seconds=0)
