"""Tests for the authorized API client factory."""

import time
from unittest.mock import patch

import aiohttp
import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from secure_config.clients.factory import (
    AuthorizedClientDetails,
    api_secret_name,
    create_authorized_api_client,
)
from secure_config.config.configuration import Configuration
from secure_config.errors import (
    MetadataConversionError,
    SecretNotFoundError,
    SecureConfigError,
    TokenAcquisitionError,
)
from secure_config.secrets.models import SecretMetadata, SecretRecord
from secure_config.secrets.store import ApplicationSecrets

CREDENTIAL_CLASS = "secure_config.auth.credential.ClientSecretCredential"


def _token(value="tok-1"):
    return AccessToken(value, int(time.time()) + 3600)


class TestApiSecretName:
    def test_from_configuration(self):
        assert api_secret_name(Configuration({"SubscriptionName": "Orders"})) == "Orders.Api"

    def test_explicit_name_wins(self):
        configuration = Configuration({"SubscriptionName": "Orders"})
        assert api_secret_name(configuration, "Billing") == "Billing.Api"

    def test_empty_explicit_name_falls_back(self):
        configuration = Configuration({"SubscriptionName": "Orders"})
        assert api_secret_name(configuration, "") == "Orders.Api"

    def test_missing_subscription_name(self):
        assert api_secret_name(Configuration()) == ".Api"

    def test_plain_mapping(self):
        assert api_secret_name({"SubscriptionName": "Orders"}) == "Orders.Api"

    def test_indexer_only_configuration(self):
        class IndexedSettings:
            def __getitem__(self, key):
                return {"SubscriptionName": "Orders"}[key]

        assert api_secret_name(IndexedSettings()) == "Orders.Api"

    def test_plain_mapping_without_subscription_name(self):
        assert api_secret_name({}) == ".Api"


class TestCreateAuthorizedApiClient:
    @pytest.mark.asyncio
    @patch(CREDENTIAL_CLASS)
    async def test_success(self, mock_credential_class, api_secret):
        mock_credential_class.return_value.get_token.return_value = _token()
        secrets = ApplicationSecrets([api_secret])
        configuration = Configuration({"SubscriptionName": "Orders"})

        async with await create_authorized_api_client(secrets, configuration) as details:
            assert details.is_complete
            assert details.api_secret_name == "Orders.Api"
            assert details.secret is api_secret
            assert details.auth_config.endpoint_address == "https://api.example.com/v1"
            headers = details.authorized_api_client.headers
            assert headers["Authorization"] == "Bearer tok-1"
            assert headers.getall("Accept") == ["application/json"]

        assert details.authorized_api_client.closed

    @pytest.mark.asyncio
    async def test_missing_secret_returns_partial_details(self):
        details = await create_authorized_api_client(
            ApplicationSecrets(), Configuration({"SubscriptionName": "Orders"})
        )

        assert details.api_secret_name == "Orders.Api"
        assert details.secret is None
        assert details.auth_config is None
        assert details.authorized_api_client is None
        assert not details.is_complete

    @pytest.mark.asyncio
    async def test_missing_secret_strict_raises(self):
        with pytest.raises(SecretNotFoundError):
            await create_authorized_api_client(
                ApplicationSecrets(), Configuration(), subscription_name="Orders", strict=True
            )

    @pytest.mark.asyncio
    async def test_bad_metadata_returns_partial_details(self):
        secret = SecretRecord(
            name="Orders.Api",
            metadata=[SecretMetadata("TimeoutSeconds", "not-a-number")],
        )

        details = await create_authorized_api_client(
            ApplicationSecrets([secret]), Configuration(), subscription_name="Orders"
        )

        assert details.secret is secret
        assert details.auth_config is None
        assert details.authorized_api_client is None

    @pytest.mark.asyncio
    async def test_no_metadata_strict_raises(self):
        secrets = ApplicationSecrets([SecretRecord(name="Orders.Api")])

        with pytest.raises(MetadataConversionError):
            await create_authorized_api_client(
                secrets, Configuration(), subscription_name="Orders", strict=True
            )

    @pytest.mark.asyncio
    @patch(CREDENTIAL_CLASS)
    async def test_token_failure_returns_unauthorized_client(
        self, mock_credential_class, api_secret
    ):
        mock_credential_class.return_value.get_token.side_effect = ClientAuthenticationError("no")

        async with await create_authorized_api_client(
            ApplicationSecrets([api_secret]), Configuration(), subscription_name="Orders"
        ) as details:
            assert details.auth_config is not None
            assert details.authorized_api_client is not None
            assert "Authorization" not in details.authorized_api_client.headers

    @pytest.mark.asyncio
    @patch(CREDENTIAL_CLASS)
    async def test_token_failure_strict_raises(self, mock_credential_class, api_secret):
        mock_credential_class.return_value.get_token.side_effect = ClientAuthenticationError("no")

        with pytest.raises(TokenAcquisitionError):
            await create_authorized_api_client(
                ApplicationSecrets([api_secret]),
                Configuration(),
                subscription_name="Orders",
                strict=True,
            )

    @pytest.mark.asyncio
    async def test_unexpected_error_strict_is_wrapped(self):
        class BrokenSecrets:
            def secret(self, name):
                raise RuntimeError("store unavailable")

        with pytest.raises(SecureConfigError) as exc_info:
            await create_authorized_api_client(
                BrokenSecrets(), Configuration(), subscription_name="Orders", strict=True
            )
        assert isinstance(exc_info.value.cause, RuntimeError)

    @pytest.mark.asyncio
    @patch(CREDENTIAL_CLASS)
    async def test_unexpected_token_error_closes_session(self, mock_credential_class, api_secret):
        mock_credential_class.return_value.get_token.side_effect = TypeError("bad scopes")
        created = []
        original = aiohttp.ClientSession

        def track(*args, **kwargs):
            session = original(*args, **kwargs)
            created.append(session)
            return session

        with patch("secure_config.auth.credential.aiohttp.ClientSession", side_effect=track):
            details = await create_authorized_api_client(
                ApplicationSecrets([api_secret]), {"SubscriptionName": "Orders"}
            )

        assert details.auth_config is not None
        assert details.authorized_api_client is None
        assert len(created) == 1
        assert created[0].closed


class TestAuthorizedClientDetails:
    @pytest.mark.asyncio
    async def test_close_without_client(self):
        details = AuthorizedClientDetails(api_secret_name="Orders.Api")
        await details.close()
        assert not details.is_complete
