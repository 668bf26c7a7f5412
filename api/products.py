import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query

import crud
import schemas
from config import settings
from dependencies import get_current_admin, get_db
from errors import NotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


def remove_local_images(images):
    """Delete files behind /uploads/ URLs; other URLs are left alone."""
    for image_url in images or []:
        if "/uploads/" not in image_url:
            continue
        file_name = Path(image_url.split("/uploads/", 1)[1]).name
        try:
            (Path(settings.upload_dir) / file_name).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"⚠️ Could not delete image file {file_name}: {e}")


@router.get("/list/categories", response_model=schemas.CategoriesResponse)
async def get_categories(db=Depends(get_db)):
    return {"success": True, "categories": await crud.get_categories(db)}


@router.get("", response_model=schemas.ProductListResponse)
async def read_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    search: Optional[str] = None,
    featured: bool = False,
    new_arrival: bool = Query(False, alias="newArrival"),
    used: bool = False,
    db=Depends(get_db),
):
    products = await crud.get_products(
        db,
        category=category,
        min_price=min_price,
        max_price=max_price,
        search=search,
        featured=featured,
        new_arrival=new_arrival,
        used=used,
    )
    logger.debug(f"📦 After filters: {len(products)} products")
    return {"success": True, "count": len(products), "products": products}


@router.get("/category/{category}", response_model=schemas.CategoryProductsResponse)
async def read_products_by_category(category: str, db=Depends(get_db)):
    products = await crud.get_products(db, category=category)
    return {"success": True, "category": category, "count": len(products), "products": products}


@router.get("/{product_id}", response_model=schemas.ProductResponse)
async def read_product(product_id: int, db=Depends(get_db)):
    product = await crud.get_product(db, product_id)
    if product is None:
        raise NotFound("Product not found")
    return {"success": True, "product": product}


# ========== ADMIN ONLY ==========
@router.post("", response_model=schemas.ProductResponse, status_code=201)
async def create_product(
    product: schemas.ProductCreate,
    db=Depends(get_db),
    current_admin: dict = Depends(get_current_admin),
):
    db_product = await crud.create_product(db, product)
    logger.info(f"✅ Product {db_product['id']} added by admin {current_admin['id']}")
    return {"success": True, "message": "Product added successfully", "product": db_product}


@router.put("/{product_id}", response_model=schemas.ProductResponse)
async def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    db=Depends(get_db),
    current_admin: dict = Depends(get_current_admin),
):
    db_product = await crud.update_product(db, product_id, product)
    if db_product is None:
        raise NotFound("Product not found")
    return {"success": True, "message": "Product updated successfully", "product": db_product}


@router.delete("/{product_id}", response_model=schemas.Envelope)
async def delete_product(
    product_id: int,
    db=Depends(get_db),
    current_admin: dict = Depends(get_current_admin),
):
    removed = await crud.delete_product(db, product_id)
    if removed is None:
        raise NotFound("Product not found")
    remove_local_images(removed["images"])
    return {"success": True, "message": "Product deleted successfully"}
