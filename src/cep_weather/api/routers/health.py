"""
cep_weather.api.routers.health

Liveness endpoint shared by both services.
"""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness only: upstream providers are not contacted.
    return {"status": "ok"}


# --- Module Notes -----------------------------------------------------------
# Kubernetes/compose healthchecks hit /healthz; there is no readiness check since
# neither service holds a connection pool or other warm-up state.
