from typing import Optional

from fastapi import APIRouter, Depends

import ledger
import schemas
from dependencies import get_current_admin, get_db, optional_token, resolve_user_id
from notifications import Notifier, get_notifier

router = APIRouter(prefix="/api/orders", tags=["orders"])


# ========== ADMIN ROUTES (before the dynamic ones) ==========
@router.get("/admin/all", response_model=schemas.OrderListResponse)
async def read_all_orders(db=Depends(get_db), current_admin: dict = Depends(get_current_admin)):
    orders = await ledger.get_all_orders(db)
    return {"success": True, "total": len(orders), "orders": orders}


@router.put("/{order_id}/status", response_model=schemas.OrderResponse)
async def update_order_status(
    order_id: int,
    status_update: schemas.OrderStatusUpdate,
    db=Depends(get_db),
    current_admin: dict = Depends(get_current_admin),
):
    order = await ledger.update_status(db, order_id, status_update.status)
    return {"success": True, "message": "Order status updated successfully", "order": order}


# ========== PUBLIC ROUTES ==========
@router.post("", response_model=schemas.OrderCreatedResponse, status_code=201)
async def create_order(
    order: schemas.OrderCreate,
    db=Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    claims: Optional[dict] = Depends(optional_token),
):
    outcome = await ledger.create_order(db, order, notifier, user_id=resolve_user_id(claims, order.user_id))
    return {
        "success": True,
        "message": "Order created successfully",
        "order_id": outcome.order["id"],
        "order": outcome.order,
        "side_effects": [vars(effect) for effect in outcome.side_effects],
    }


@router.get("/user/{user_id}", response_model=schemas.OrderListResponse)
async def read_user_orders(user_id: str, db=Depends(get_db)):
    orders = await ledger.get_user_orders(db, user_id)
    return {"success": True, "total": len(orders), "orders": orders}


@router.get("/{order_id}", response_model=schemas.OrderResponse)
async def read_order(order_id: int, db=Depends(get_db)):
    return {"success": True, "order": await ledger.get_order_by_id(db, order_id)}
