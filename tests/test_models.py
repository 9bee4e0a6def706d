"""
Unit tests for request and response models.
"""

import dataclasses

import pytest

from wallet_client.models import RequestDescriptor, TokenResponse, UserProfile


class TestRequestDescriptor:

    def test_with_bearer_returns_copy(self):
        original = RequestDescriptor(endpoint="/wallet/balance", headers={"X-Trace-Id": "abc"})

        retried = original.with_bearer("T2")

        assert retried is not original
        assert retried.headers == {"X-Trace-Id": "abc", "Authorization": "Bearer T2"}
        assert original.headers == {"X-Trace-Id": "abc"}

    def test_with_bearer_replaces_existing_header(self):
        descriptor = RequestDescriptor(endpoint="/x", headers={"authorization": "Bearer T1"})

        assert descriptor.with_bearer("T2").headers == {"Authorization": "Bearer T2"}

    def test_descriptor_is_frozen(self):
        descriptor = RequestDescriptor(endpoint="/x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.method = "POST"

    def test_defaults(self):
        descriptor = RequestDescriptor(endpoint="/x")
        assert descriptor.method == "GET"
        assert descriptor.with_credentials is True
        assert descriptor.authenticate is True
        assert descriptor.json is None


class TestTokenResponse:

    def test_from_dict(self):
        token = TokenResponse.from_dict({"access_token": "T1", "token_type": "bearer"})
        assert token.access_token == "T1"

    @pytest.mark.parametrize("data", [{}, {"access_token": ""}, {"access_token": 42}])
    def test_from_dict_requires_token(self, data):
        with pytest.raises(ValueError):
            TokenResponse.from_dict(data)


class TestUserProfile:

    def test_roundtrip_keeps_unknown_fields(self):
        profile = UserProfile.from_dict({"id": 1, "name": "Ana", "role": "admin", "cpf": "123"})

        assert profile.is_admin is True
        assert profile.balance == 0.0
        assert profile.to_dict()["cpf"] == "123"
