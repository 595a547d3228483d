"""
Invoicing — clients, invoices, recurring billing and revenue analytics.
"""
from apps import AppManifest
from apps.invoicing.config import APP_ID, APP_NAME, ANALYTICS_CACHE_TTL


def get_manifest() -> AppManifest:
    return AppManifest(
        app_id=APP_ID,
        name=APP_NAME,
        description="Client management, invoicing, recurring billing and revenue analytics.",
        router_module="apps.invoicing.router",
        cache_pools=[
            {"name": "invoicing", "maxsize": 256, "ttl": ANALYTICS_CACHE_TTL},
        ],
    )
