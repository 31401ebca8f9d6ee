from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from vane_api.context import AppContext, get_context
from vane_api.schemas import (
    LogRequest,
    LogResponse,
    UnlogResponse,
    VaneCreate,
    VaneCreated,
    VanesResponse,
)

router = APIRouter()


@router.get("/vanes", response_model=VanesResponse)
async def list_vanes(context: AppContext = Depends(get_context)):
    return {"vanes": await context.habits.list_habits()}


@router.post("/vane", response_model=VaneCreated, status_code=201)
async def create_vane(payload: VaneCreate, context: AppContext = Depends(get_context)):
    vane = await context.habits.create_habit(payload.title)
    return VaneCreated(id=vane.id, title=vane.title)


@router.delete("/vane/{vane_id}", status_code=204)
async def delete_vane(vane_id: str, context: AppContext = Depends(get_context)):
    await context.habits.delete_habit(vane_id)
    return Response(status_code=204)


@router.post("/vane/log", response_model=LogResponse)
async def log_vane(payload: LogRequest, context: AppContext = Depends(get_context)):
    vane = await context.habits.log_day(payload.vane_id, payload.day)
    return LogResponse(vane_id=payload.vane_id, log=vane.log)


@router.post("/vane/unlog", response_model=UnlogResponse)
async def unlog_vane(payload: LogRequest, context: AppContext = Depends(get_context)):
    await context.habits.unlog_day(payload.vane_id, payload.day)
    return UnlogResponse(vane_id=payload.vane_id)
