"""
Prosthesis Orders Backend — Order Record Route Handlers
=========================================================

What:  The five HTTP operations over the order collection.
Why:   Entry point for the frontend's order table and forms.
How:   Extracts path/body data, delegates to RecordService, shapes the
       response. Errors are raised as application exceptions and turned into
       JSON by the global handlers in main.py.

Route Inventory (collection defaults to "protesis"):
    GET    /api/<collection>               list, newest fecha_pedido first
    POST   /api/<collection>               create (201) + background email
    PUT    /api/<collection>/{id}          partial update
    DELETE /api/<collection>/{id}          delete, body {"pin": "..."}
    POST   /api/<collection>/bulk-update   body {"ids": [...], "updateData": {...}}
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends

from prosthesis_orders.config import Settings, get_settings
from prosthesis_orders.schemas.record import ActionResponse, ErrorResponse
from prosthesis_orders.services.notification_service import (
    NotificationDispatcher,
    get_dispatcher,
)
from prosthesis_orders.services.record_service import record_service
from prosthesis_orders.store import RecordStore, get_record_store

logger = logging.getLogger(__name__)

# Mounted by create_app() under /api/<STORE_COLLECTION>
router = APIRouter(tags=["Records"])

_STORE_ERROR = {"description": "Store error", "model": ErrorResponse}


@router.get(
    "",
    response_model=List[Dict[str, Any]],
    responses={500: _STORE_ERROR},
    summary="List all orders",
    description="Returns every order, newest order date (fecha_pedido) first, each with its id.",
)
async def list_records(
    store: RecordStore = Depends(get_record_store),
) -> List[Dict[str, Any]]:
    return await record_service.list_records(store)


@router.post(
    "",
    status_code=201,
    response_model=Dict[str, Any],
    responses={
        201: {"description": "Order created; body is the stored order with its id"},
        400: {"description": "Missing paciente, empresa or medico", "model": ErrorResponse},
        500: _STORE_ERROR,
    },
    summary="Create an order",
)
async def create_record(
    background_tasks: BackgroundTasks,
    payload: Dict[str, Any] = Body(..., description="Order fields"),
    store: RecordStore = Depends(get_record_store),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> Dict[str, Any]:
    """
    Create an order and schedule its email notification.

    The notification runs as a background task after the response is sent;
    its outcome only shows up in the logs.
    """
    record = await record_service.create_record(store, payload)
    background_tasks.add_task(dispatcher.dispatch, record)
    return record


@router.put(
    "/{record_id}",
    response_model=ActionResponse,
    responses={500: _STORE_ERROR},
    summary="Update an order",
    description="Merges the given fields into the order. Fields are not validated.",
)
async def update_record(
    record_id: str,
    payload: Dict[str, Any] = Body(..., description="Fields to change"),
    store: RecordStore = Depends(get_record_store),
) -> ActionResponse:
    await record_service.update_record(store, record_id, payload)
    return ActionResponse(message="Prótesis actualizada")


@router.delete(
    "/{record_id}",
    response_model=ActionResponse,
    responses={
        403: {"description": "Wrong PIN", "model": ErrorResponse},
        500: _STORE_ERROR,
    },
    summary="Delete an order (PIN protected)",
)
async def delete_record(
    record_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None, description='{"pin": "..."}'),
    store: RecordStore = Depends(get_record_store),
    config: Settings = Depends(get_settings),
) -> ActionResponse:
    pin = (payload or {}).get("pin")
    await record_service.delete_record(store, record_id, pin, config.delete_pin)
    return ActionResponse(message="Prótesis eliminada")


@router.post(
    "/bulk-update",
    response_model=ActionResponse,
    responses={
        400: {"description": "ids missing or empty", "model": ErrorResponse},
        500: _STORE_ERROR,
    },
    summary="Apply the same fields to many orders atomically",
)
async def bulk_update(
    payload: Dict[str, Any] = Body(..., description='{"ids": [...], "updateData": {...}}'),
    store: RecordStore = Depends(get_record_store),
) -> ActionResponse:
    count = await record_service.bulk_update(
        store, payload.get("ids"), payload.get("updateData")
    )
    return ActionResponse(message=f"{count} registros actualizados")
