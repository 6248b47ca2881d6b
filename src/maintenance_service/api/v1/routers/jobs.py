from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter

from maintenance_service.api.deps import ContainerDep
from maintenance_service.api.v1.schemas.job import JobRunResponse, JobStatusResponse
from maintenance_service.application.exceptions import ConflictError
from maintenance_service.bootstrap import Container

router = APIRouter(prefix="/api/v1/jobs", tags=["jobs"])


async def _status(container: Container, name: str) -> JobStatusResponse:
    state = await container.job_state.load(name)
    lock = await container.lock.inspect(name)
    return JobStatusResponse(
        name=name,
        cursor=state.cursor if state else None,
        cursor_updated_at=state.updated_at if state else None,
        locked=lock is not None,
        lock_expires_at=lock.expires_at if lock else None,
        next_run_at=await container.scheduler.next_scheduled(name),
        next_continuation_at=await container.scheduler.next_scheduled(f"{name}.continue"),
    )


@router.get("", response_model=list[JobStatusResponse])
async def list_jobs(container: ContainerDep) -> list[JobStatusResponse]:
    return [await _status(container, job.name) for job in container.registry.jobs]


@router.get("/{name}", response_model=JobStatusResponse)
async def get_job(name: str, container: ContainerDep) -> JobStatusResponse:
    job = container.registry.get_job(name)
    return await _status(container, job.name)


@router.post("/{name}/cycles", response_model=JobRunResponse)
async def start_cycle(name: str, container: ContainerDep) -> JobRunResponse:
    job = container.registry.get_job(name)
    result = await job.start_cycle()
    if not result.acquired:
        raise ConflictError(f"Job {name} is already running")
    return JobRunResponse(job=name, result=asdict(result))


@router.post("/{name}/batches", response_model=JobRunResponse)
async def run_batch(name: str, container: ContainerDep) -> JobRunResponse:
    job = container.registry.get_job(name)
    result = await job.run_batch()
    if not result.acquired:
        raise ConflictError(f"Job {name} is already running")
    return JobRunResponse(job=name, result=asdict(result))
