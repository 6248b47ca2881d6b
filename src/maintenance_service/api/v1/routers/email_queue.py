from __future__ import annotations

from fastapi import APIRouter, Query

from maintenance_service.api.deps import ContainerDep
from maintenance_service.api.v1.schemas.email import (
    ClearQueueResponse,
    DeliveryLogResponse,
    QueueStatsResponse,
    SweepResponse,
)

router = APIRouter(prefix="/api/v1/email", tags=["email"])


@router.get("/queue", response_model=QueueStatsResponse)
async def queue_stats(container: ContainerDep) -> QueueStatsResponse:
    stats = await container.email_queue.stats()
    return QueueStatsResponse.model_validate(stats, from_attributes=True)


@router.post("/queue/sweep", response_model=SweepResponse)
async def sweep_queue(container: ContainerDep) -> SweepResponse:
    summary = await container.email_queue.sweep()
    return SweepResponse.model_validate(summary, from_attributes=True)


@router.delete("/queue", response_model=ClearQueueResponse)
async def clear_queue(container: ContainerDep) -> ClearQueueResponse:
    return ClearQueueResponse(removed=await container.email_queue.clear())


@router.get("/log", response_model=list[DeliveryLogResponse])
async def delivery_log(
    container: ContainerDep,
    recipient: str | None = Query(None),
    limit: int = Query(50, ge=1, le=1000),
) -> list[DeliveryLogResponse]:
    entries = await container.email_queue.recent_log(recipient=recipient, limit=limit)
    return [DeliveryLogResponse.model_validate(e, from_attributes=True) for e in entries]
