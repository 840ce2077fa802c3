"""
Fueltrakr — VIN Decode Proxy (FastAPI)

Authenticated backend path of the decode pipeline. Performs its own
cache-or-fetch against the canonical vehicle store and the public
registry, and answers with flat VehicleRecord JSON.

Endpoints:
  GET    /health                 — liveness
  POST   /decode-vin             — decode (store first, registry on miss)
  GET    /vehicles/{vin}         — stored record only, 404 when unknown
  GET    /vehicles               — every stored, unexpired record
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fueltrakr.common.logger import configure_logging
from fueltrakr.common.schemas import DecodeVinRequest, FailureCause
from fueltrakr.common.utils import is_valid_vin, normalize_vin
from fueltrakr.config import get_settings
from fueltrakr.database.session import Base, engine, get_db
from fueltrakr.services.registry_client import RegistryClient
from fueltrakr.services.vehicle_store import VehicleStore

logger = logging.getLogger(__name__)
settings = get_settings()

# ── App ───────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Fueltrakr VIN Decode Proxy",
    description="Cache-or-fetch VIN decoding backed by the public vehicle registry.",
    version="1.0.0",
)

_bearer = HTTPBearer(auto_error=False)
_registry: Optional[RegistryClient] = None


@app.on_event("startup")
async def startup() -> None:
    Base.metadata.create_all(bind=engine)
    if not settings.proxy_api_tokens:
        logger.warning("No proxy API tokens configured — accepting any bearer token")
    logger.info("Fueltrakr decode proxy started — vehicle store ready.")


# ── Dependencies ──────────────────────────────────────────────────────────────

def get_registry_client() -> RegistryClient:
    global _registry
    if _registry is None:
        _registry = RegistryClient()
    return _registry


def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    allowed = get_settings().proxy_api_tokens
    if allowed and credentials.credentials not in allowed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid bearer token")
    return credentials.credentials


# ── Health ────────────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"])
async def health() -> Dict[str, str]:
    return {"status": "ok", "environment": settings.environment.value}


# ── Decoding ──────────────────────────────────────────────────────────────────

@app.post("/decode-vin", tags=["Vehicles"])
def decode_vin(
    req: DecodeVinRequest,
    db: Session = Depends(get_db),
    registry: RegistryClient = Depends(get_registry_client),
    _token: str = Depends(require_token),
) -> Any:
    """
    Returns the stored record when present (including failures still inside
    their retention window); otherwise decodes via the registry and stores
    the outcome. Registry outages answer 500 with the failure record.
    """
    if not req.vin:
        return JSONResponse(status_code=400, content={"error": "VIN is required"})
    if not is_valid_vin(req.vin):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid VIN format. VIN must be 17 characters.", "valid": False},
        )

    vin = normalize_vin(req.vin)
    store = VehicleStore(db)

    record = store.get(vin)
    if record is not None:
        logger.info(f"VIN {vin} found in store")
    else:
        logger.info(f"Decoding VIN {vin} via vehicle registry...")
        record = registry.decode(vin)
        store.put(record)

    body = record.model_dump(mode="json")
    # a stored outage still answers 500 until its row expires
    if record.failure == FailureCause.TRANSPORT:
        return JSONResponse(status_code=500, content=body)
    return body


@app.get("/vehicles/{vin}", tags=["Vehicles"])
def get_vehicle(
    vin: str,
    db: Session = Depends(get_db),
    _token: str = Depends(require_token),
) -> Dict[str, Any]:
    """Cached lookup only; never reaches the registry."""
    record = VehicleStore(db).get(vin)
    if record is None:
        raise HTTPException(status_code=404, detail="Vehicle not found in cache")
    return record.model_dump(mode="json")


@app.get("/vehicles", tags=["Vehicles"])
def list_vehicles(
    db: Session = Depends(get_db),
    _token: str = Depends(require_token),
) -> List[Dict[str, Any]]:
    return [record.model_dump(mode="json") for record in VehicleStore(db).list_all()]


# ── Entry point ───────────────────────────────────────────────────────────────

def run_server() -> None:
    configure_logging(settings.log_level.value)
    uvicorn.run(
        "fueltrakr.services.proxy_api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment.value == "dev",
        log_config=None,
    )


if __name__ == "__main__":
    run_server()
