"""Discovery of App Configuration stores visible to the signed-in user."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from ..clients.resource_manager import ResourceManagerClient, ResourceManagerError
from ..constants import ENVIRONMENT_DEVELOPMENT, ENVIRONMENT_PRODUCTION, ENVIRONMENT_STAGING
from ..schemas import DiscoveredResourceResponse, SubscriptionSummary

logger = logging.getLogger(__name__)


def _environment_from_text(value: str) -> str | None:
    lowered = value.lower()
    if "prod" in lowered:
        return ENVIRONMENT_PRODUCTION
    if "stag" in lowered:
        return ENVIRONMENT_STAGING
    if "dev" in lowered:
        return ENVIRONMENT_DEVELOPMENT
    return None


def detect_environment_type(resource_name: str, tags: Mapping[str, str] | None = None) -> str:
    """Infer the environment from an ``environment`` tag, then from the store name."""

    for tag_name in ("environment", "Environment"):
        tag_value = (tags or {}).get(tag_name)
        if tag_value:
            detected = _environment_from_text(tag_value)
            if detected:
                return detected

    detected = _environment_from_text(resource_name or "")
    if detected:
        return detected
    # "test" stores are treated as development; everything else defaults there too.
    return ENVIRONMENT_DEVELOPMENT


def extract_resource_group(resource_id: str) -> str:
    """Parse the resource group out of an ARM id (``/subscriptions/{s}/resourceGroups/{rg}/...``)."""

    parts = [part for part in (resource_id or "").split("/") if part]
    for index, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[index + 1]
    return "Unknown"


def _to_discovered(subscription_id: str, store: Mapping[str, Any]) -> DiscoveredResourceResponse:
    name = store.get("name") or ""
    tags = {str(key): str(value) for key, value in (store.get("tags") or {}).items()}
    properties = store.get("properties") or {}
    return DiscoveredResourceResponse(
        display_name=name,
        resource_name=name,
        resource_group=extract_resource_group(store.get("id") or ""),
        subscription_id=subscription_id,
        endpoint=properties.get("endpoint"),
        location=store.get("location") or "",
        environment_type=detect_environment_type(name, tags),
        tags=tags,
    )


async def list_subscriptions(client: ResourceManagerClient) -> list[SubscriptionSummary]:
    subscriptions = await client.list_subscriptions()
    summaries = [
        SubscriptionSummary(
            subscription_id=item.get("subscriptionId") or "",
            name=item.get("displayName") or "",
            state=item.get("state") or "Unknown",
        )
        for item in subscriptions
    ]
    logger.info("Found %d subscriptions", len(summaries))
    return summaries


async def discover_resources(client: ResourceManagerClient) -> list[DiscoveredResourceResponse]:
    """Walk every subscription and collect its App Configuration stores."""

    discovered: list[DiscoveredResourceResponse] = []
    for subscription in await list_subscriptions(client):
        logger.info("Scanning subscription: %s (%s)", subscription.name, subscription.subscription_id)
        try:
            stores = await client.list_configuration_stores(subscription.subscription_id)
        except ResourceManagerError:
            logger.warning("Failed to scan subscription: %s", subscription.subscription_id, exc_info=True)
            continue

        for store in stores:
            try:
                resource = _to_discovered(subscription.subscription_id, store)
            except (TypeError, ValueError, AttributeError):
                logger.warning("Failed to process App Configuration resource: %s", store.get("id"), exc_info=True)
                continue
            discovered.append(resource)
            logger.info("Discovered App Configuration: %s in %s", resource.resource_name, resource.resource_group)

    logger.info("Total App Configuration resources discovered: %d", len(discovered))
    return discovered


__all__ = ["detect_environment_type", "discover_resources", "extract_resource_group", "list_subscriptions"]
