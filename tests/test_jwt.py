from datetime import timedelta

import jwt
import pytest

from budget_api.utils.jwt import create_access_token, decode_access_token


class TestAccessTokens:

    def test_round_trip_keeps_subject(self):
        payload = decode_access_token(create_access_token({"sub": "user-1"}))
        assert payload["sub"] == "user-1"
        assert payload["exp"] > payload["iat"]

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-5))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_tampered_token(self):
        token = create_access_token({"sub": "user-1"}) + "x"
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(token)
