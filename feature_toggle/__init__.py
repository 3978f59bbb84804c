"""Feature toggle management API for Azure App Configuration."""
