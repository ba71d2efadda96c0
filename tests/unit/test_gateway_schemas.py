"""Unit tests for cm_gateway Pydantic schemas."""

import pytest
from pydantic import ValidationError

from src.cm_gateway.user.schemas import LoginResponse, RegisterRequest, RegisterResponse, UserInfo


class TestRegisterRequest:
    def test_valid_input(self) -> None:
        req = RegisterRequest(username="ash_k", email="ash@example.com", password="Pikachu25")
        assert req.username == "ash_k"

    def test_username_too_short(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="ab", email="a@b.com", password="Pikachu25")

    def test_username_invalid_chars(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="ash!", email="a@b.com", password="Pikachu25")

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="ash_k", email="not-an-email", password="Pikachu25")

    @pytest.mark.parametrize("password", ["Ab1", "alllower1", "ALLUPPER1", "NoDigitPass"])
    def test_weak_passwords_rejected(self, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="ash_k", email="a@b.com", password=password)


class TestResponses:
    def test_register_response_starts_at_full_legit_rate(self) -> None:
        resp = RegisterResponse(
            user_id="u1", username="ash_k", email="a@b.com", created_at="2026-01-01T00:00:00+00:00"
        )
        assert resp.legit_rate == 100

    def test_login_response_is_bearer(self) -> None:
        resp = LoginResponse(
            access_token="a",
            refresh_token="r",
            expires_in=1800,
            user=UserInfo(user_id="u1", username="ash_k", email="a@b.com"),
        )
        assert resp.token_type == "Bearer"
