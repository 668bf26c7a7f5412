from typing import Optional

from fastapi import APIRouter, Depends

import crud
import schemas
from dependencies import get_db, optional_token, resolve_user_id
from errors import ValidationError

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _user_id(claims: Optional[dict], supplied: Optional[str]) -> str:
    user_id = resolve_user_id(claims, supplied)
    if not user_id:
        raise ValidationError("User ID required")
    return user_id


@router.get("/{user_id}", response_model=schemas.CartResponse)
async def read_cart(user_id: str, db=Depends(get_db)):
    return {"success": True, "cart": await crud.get_cart(db, user_id)}


@router.post("/add", response_model=schemas.CartResponse)
async def add_to_cart(
    body: schemas.CartAdd,
    db=Depends(get_db),
    claims: Optional[dict] = Depends(optional_token),
):
    user_id = _user_id(claims, body.user_id)
    cart = await crud.add_to_cart(db, user_id, body.product_id, body.quantity, body.product_name, body.price)
    return {"success": True, "message": "Item added to cart", "cart": cart}


@router.post("/remove", response_model=schemas.CartResponse)
async def remove_from_cart(
    body: schemas.CartRemove,
    db=Depends(get_db),
    claims: Optional[dict] = Depends(optional_token),
):
    user_id = _user_id(claims, body.user_id)
    cart = await crud.remove_from_cart(db, user_id, body.product_id)
    return {"success": True, "message": "Item removed from cart", "cart": cart}


@router.post("/update", response_model=schemas.CartResponse)
async def update_cart_item(
    body: schemas.CartUpdate,
    db=Depends(get_db),
    claims: Optional[dict] = Depends(optional_token),
):
    user_id = _user_id(claims, body.user_id)
    cart = await crud.update_cart_item(db, user_id, body.product_id, body.quantity)
    return {"success": True, "message": "Cart updated", "cart": cart}


@router.post("/clear/{user_id}", response_model=schemas.CartResponse)
async def clear_cart(user_id: str, db=Depends(get_db)):
    cart = await crud.clear_cart(db, user_id)
    return {"success": True, "message": "Cart cleared", "cart": cart}
