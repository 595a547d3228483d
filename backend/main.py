"""
HonestInvoice — Entitlement & Revenue Analytics API

Entry point for the FastAPI backend. Auto-discovers apps from backend/apps/
and registers their routers and cache pools.

URL scheme:
  /api/hub/*                                    Account (profile, access, settings, billing)
  /api/apps/{app_id}/*                          App-level routes
"""
import importlib
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from apps import discover_apps
from core.cache import register_cache_pool
from core.errors import AppError


def _register_apps(app: FastAPI):
    """Discover apps and register their routers + cache pools."""
    manifests = discover_apps()

    for manifest in manifests:
        for pool in manifest.cache_pools:
            register_cache_pool(pool["name"], pool.get("maxsize", 128), pool.get("ttl", 60))

        if manifest.router_module:
            mod = importlib.import_module(manifest.router_module)
            app.include_router(
                mod.router,
                prefix=f"/api/apps/{manifest.app_id}",
                tags=[manifest.name]
            )
            print(f"[Router] {manifest.name}: /api/apps/{manifest.app_id}/*")


def _register_core_routes(app: FastAPI):
    """Register account-level routes (hub, billing)."""
    from core.hub.router import router as hub_router
    from core.hub.billing import router as billing_router

    app.include_router(hub_router, prefix="/api/hub", tags=["Account — Hub"])
    app.include_router(billing_router, prefix="/api/hub", tags=["Account — Billing"])
    print("[Router] Account hub: /api/hub/*")


# Create app
app = FastAPI(
    title="HonestInvoice API",
    description="Invoicing, entitlements and revenue analytics",
    version="1.0.0"
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render store, integrity and external-service failures as JSON."""
    print(f"[Error] {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_dict())


# ─────────────────────────────────────────────────────────────────────────────
# ROUTE REGISTRATION
# ─────────────────────────────────────────────────────────────────────────────

_register_core_routes(app)
_register_apps(app)


# ─────────────────────────────────────────────────────────────────────────────
# HEALTH CHECK & ROOT
# ─────────────────────────────────────────────────────────────────────────────

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "debug": settings.debug}


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "HonestInvoice",
        "version": "1.0.0",
        "docs": "/docs",
        "apps": {
            "invoicing": "/api/apps/invoicing"
        }
    }
