"""Construction of App Configuration clients for registered resources."""
from __future__ import annotations

import logging

from azure.appconfiguration import AzureAppConfigurationClient
from fastapi import Depends

from ..models import AppConfigResource
from .auth_service import get_bearer_token
from .token_exchange import get_app_config_credential

logger = logging.getLogger(__name__)


class ResourceConfigurationError(ValueError):
    """Raised when a resource lacks usable connection details."""


class AppConfigConnector:
    """Builds store clients lazily so nothing is contacted until a handler asks.

    Resources registered with a connection string use it directly; resources
    registered by endpoint are reached with a token exchanged on behalf of the
    calling user.
    """

    def __init__(self, user_assertion: str | None) -> None:
        self._user_assertion = user_assertion

    def client_for_location(
        self,
        *,
        connection_string: str | None = None,
        endpoint: str | None = None,
    ) -> AzureAppConfigurationClient:
        if connection_string:
            try:
                return AzureAppConfigurationClient.from_connection_string(connection_string)
            except ValueError as exc:
                raise ResourceConfigurationError("Connection string is malformed") from exc

        if endpoint:
            credential = get_app_config_credential(self._user_assertion)
            return AzureAppConfigurationClient(endpoint, credential)

        raise ResourceConfigurationError("Resource has neither a connection string nor an endpoint")

    def client_for(self, resource: AppConfigResource) -> AzureAppConfigurationClient:
        logger.debug("Opening App Configuration client for resource %s", resource.id)
        return self.client_for_location(
            connection_string=resource.connection_string,
            endpoint=resource.endpoint,
        )


def get_app_config_connector(token: str | None = Depends(get_bearer_token)) -> AppConfigConnector:
    """FastAPI dependency returning a connector bound to the caller's token."""

    return AppConfigConnector(token)


__all__ = ["AppConfigConnector", "ResourceConfigurationError", "get_app_config_connector"]
