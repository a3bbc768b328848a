###########EXTERNAL IMPORTS############

from fastapi import APIRouter, Request, Depends
from fastapi.responses import JSONResponse

#######################################

#############LOCAL IMPORTS#############

from analytics.system import SnapshotProvider
from analytics.rate import RateDeriver
from controller.registry import SessionRegistry
from controller.exceptions import ProviderError
from model.monitoring.config import MonitorConfig
from web.api.decorator import api_endpoint
from web.dependencies import services
import web.exceptions as api_exception

#######################################

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/get_system_info")
@api_endpoint
async def get_system_info(
    request: Request,
    provider: SnapshotProvider = Depends(services.get_provider),
) -> JSONResponse:
    """Retrieves one immediate system snapshot. No session is involved, so every derived rate is zero."""

    try:
        snapshot = await provider.sample()
    except ProviderError as e:
        raise api_exception.SnapshotUnavailable(api_exception.Errors.SYSTEM.SNAPSHOT_UNAVAILABLE, str(e))

    return JSONResponse(content=RateDeriver().enrich(snapshot).get_data())


@router.get("/get_monitor_config")
@api_endpoint
async def get_monitor_config(
    request: Request,
    config: MonitorConfig = Depends(services.get_config),
) -> JSONResponse:
    """Retrieves the monitoring parameters the viewers must honor."""

    return JSONResponse(content=config.get_data())


@router.get("/get_sessions")
@api_endpoint
async def get_sessions(
    request: Request,
    registry: SessionRegistry = Depends(services.get_registry),
) -> JSONResponse:
    """Retrieves the state of every connected client's monitoring session."""

    return JSONResponse(content=registry.get_sessions())
