"""HTTP routes for the sermon, devotion and English class planners.

Every route takes the domain as its first path segment; the handlers share one
implementation and differ only in the ``DomainConfig`` they resolve.
"""

from __future__ import annotations

from typing import Any, Dict, List, NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from api.dependencies import get_domain_config, get_planner
from api.models.schemas import (
    AssignmentOut,
    BatchUpdateRequest,
    CascadeRequest,
    ItemCreateRequest,
    ItemUpdateRequest,
    ScheduleResponse,
    SeriesCreateRequest,
    SeriesOut,
    WriteFailureOut,
    WriteResponse,
)
from api.services.planner import PlannerService, ScheduleOutcome
from core.domains import DomainConfig
from gateway import UpstreamUnavailableError, WriteResult
from scheduler import EmptyBacklogError, ItemNotFoundError, NoActiveSeriesError

router = APIRouter(prefix="/api/{domain}", tags=["planner"])


@router.get("/items")
def list_items(
    background_tasks: BackgroundTasks,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> List[Dict[str, Any]]:
    """Return the domain's items, served from cache when possible."""

    try:
        return planner.list_items(domain, spawn=background_tasks.add_task)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)


@router.get("/series")
def list_series(
    background_tasks: BackgroundTasks,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> List[Dict[str, Any]]:
    try:
        return planner.list_series(domain, spawn=background_tasks.add_task)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)


@router.post("/series")
def add_series(
    request: SeriesCreateRequest,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> Dict[str, Any]:
    try:
        result = planner.add_series(domain, request.title, request.properties)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return {"success": True, "result": result}


@router.get("/series/active", response_model=SeriesOut)
def active_series(
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> SeriesOut:
    """Return the series the planner schedules against."""

    try:
        series = planner.active_series(domain)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    if series is None:
        raise HTTPException(status_code=404, detail="No active series with a start date and title")
    return SeriesOut(
        id=series.id,
        title=series.title,
        start_date=series.start_date,
        weekdays=sorted(series.allowed_weekdays),
    )


@router.post("/items")
def add_item(
    request: ItemCreateRequest,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> Dict[str, Any]:
    try:
        result = planner.add_item(domain, request.title, request.properties)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return {"success": True, "result": result}


@router.put("/items/{item_id}")
def update_item(
    item_id: str,
    request: ItemUpdateRequest,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> Dict[str, Any]:
    try:
        result = planner.update_item(domain, item_id, request.properties, title=request.title)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return {"success": True, "result": result}


@router.delete("/items/{item_id}")
def delete_item(
    item_id: str,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> Dict[str, Any]:
    try:
        result = planner.delete_item(domain, item_id)
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return {"success": True, "result": result}


@router.post("/batch-update", response_model=WriteResponse)
def batch_update(
    request: BatchUpdateRequest,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> WriteResponse:
    """Write several dates at once, reporting per-item failures."""

    try:
        result = planner.write_dates(domain, [(update.id, update.date) for update in request.updates])
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return WriteResponse(**_write_fields(result))


@router.post("/plan-month", response_model=ScheduleResponse)
def plan_month(
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> ScheduleResponse:
    """Schedule the next batch of items after the last completed one."""

    try:
        outcome = planner.plan_month(domain)
    except (NoActiveSeriesError, EmptyBacklogError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return _schedule_response(domain, outcome)


@router.post("/cascade-reschedule", response_model=ScheduleResponse)
def cascade_reschedule(
    request: CascadeRequest,
    domain: DomainConfig = Depends(get_domain_config),
    planner: PlannerService = Depends(get_planner),
) -> ScheduleResponse:
    """Move one item by hand and shift everything after it."""

    try:
        outcome = planner.cascade_reschedule(domain, request.item_id, request.new_date)
    except ItemNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except (NoActiveSeriesError, EmptyBacklogError) as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except UpstreamUnavailableError as exc:
        _upstream_error(exc)
    return _schedule_response(domain, outcome)


def _upstream_error(exc: UpstreamUnavailableError) -> NoReturn:
    raise HTTPException(status_code=503, detail=str(exc)) from exc


def _write_fields(result: WriteResult) -> Dict[str, Any]:
    return {
        "success": not result.failures,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "partial": result.partial,
        "failures": [WriteFailureOut(id=f.id, error=f.error) for f in result.failures],
    }


def _schedule_response(domain: DomainConfig, outcome: ScheduleOutcome) -> ScheduleResponse:
    return ScheduleResponse(
        domain=domain.name,
        series_title=outcome.series.title,
        assignments=[
            AssignmentOut(id=a.item.id, title=a.item.title, date=a.date) for a in outcome.assignments
        ],
        **_write_fields(outcome.write),
    )
