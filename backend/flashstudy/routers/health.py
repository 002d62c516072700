from fastapi import APIRouter, Request

from flashstudy.models.envelope import Envelope
from flashstudy.models.health import HealthStatus

router = APIRouter()


@router.get("/health", response_model=Envelope[HealthStatus])
async def health(request: Request):
    store = request.app.state.store
    return Envelope(data=HealthStatus(status="ok" if store.is_open else "degraded"))
