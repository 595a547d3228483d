"""
App registry — auto-discovery and manifest system.

Each app in backend/apps/<name>/ exposes a get_manifest() function
that returns an AppManifest. The discover_apps() function scans for
all apps and returns their manifests for router registration.
"""
import importlib
import pkgutil
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class AppManifest:
    """Describes a single app mounted under /api/apps/{app_id}."""
    app_id: str                            # e.g. 'invoicing'
    name: str                              # e.g. 'Invoicing'
    description: str = ""
    router_module: Optional[str] = None    # Dotted path to module with `router` attribute
    cache_pools: list = field(default_factory=list)  # [{name, maxsize, ttl}]


def discover_apps() -> List[AppManifest]:
    """
    Scan backend/apps/ for app packages and collect their manifests.

    Each app package must have a get_manifest() function in its __init__.py.
    Packages starting with '_' are skipped (templates, helpers).
    """
    manifests = []

    # Import the apps package itself
    import apps

    for importer, modname, ispkg in pkgutil.iter_modules(apps.__path__):
        if not ispkg or modname.startswith("_"):
            continue

        mod = importlib.import_module(f"apps.{modname}")
        if hasattr(mod, "get_manifest"):
            manifest = mod.get_manifest()
            manifests.append(manifest)
            print(f"[Apps] Discovered: {manifest.name} ({manifest.app_id})")
        else:
            print(f"[Apps] Warning: apps.{modname} has no get_manifest()")

    return manifests
