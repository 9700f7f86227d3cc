"""
TrackMyStartup - Password Reset Link Tests
"""

from app.services.password_reset import (
    ResetTokenKind,
    classify_reset_params,
    parse_reset_link,
)


class TestParseResetLink:

    def test_reads_query_string(self):
        params = parse_reset_link("https://app.example.com/reset-password?type=recovery&token=abc")
        assert params == {"type": "recovery", "token": "abc"}

    def test_reads_hash_fragment(self):
        params = parse_reset_link(
            "https://app.example.com/reset-password#access_token=at&refresh_token=rt&type=recovery"
        )
        assert params["access_token"] == "at"
        assert params["refresh_token"] == "rt"

    def test_query_wins_over_fragment(self):
        params = parse_reset_link("https://app.example.com/reset?token=from-query#token=from-hash")
        assert params["token"] == "from-query"

    def test_empty_values_dropped(self):
        assert parse_reset_link("https://app.example.com/reset?token=&code=") == {}


class TestClassifyResetParams:
    """Session pair, then recovery token, then auth code, then existing session."""

    def test_session_pair(self):
        credential = classify_reset_params({
            "access_token": "at", "refresh_token": "rt", "token": "t", "type": "recovery",
        })

        assert credential.kind == ResetTokenKind.SESSION_PAIR
        assert credential.access_token == "at"
        assert credential.link_type == "recovery"

    def test_access_token_alone_is_not_a_pair(self):
        credential = classify_reset_params({"access_token": "at", "token": "t"})

        assert credential.kind == ResetTokenKind.RECOVERY_TOKEN
        assert credential.token == "t"

    def test_token_beats_code(self):
        credential = classify_reset_params({"token": "t", "code": "c"})
        assert credential.kind == ResetTokenKind.RECOVERY_TOKEN

    def test_auth_code(self):
        credential = classify_reset_params({"code": "c"})

        assert credential.kind == ResetTokenKind.AUTH_CODE
        assert credential.code == "c"

    def test_falls_back_to_existing_session(self):
        credential = classify_reset_params({"type": "recovery"})

        assert credential.kind == ResetTokenKind.EXISTING_SESSION
        assert credential.link_type == "recovery"

    def test_empty_params(self):
        credential = classify_reset_params({})

        assert credential.kind == ResetTokenKind.EXISTING_SESSION
        assert credential.link_type is None
