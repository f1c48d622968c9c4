import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dayfit.core.auth import AuthUser, current_user
from dayfit.core.db import get_db
from dayfit.models.catalog import Product
from dayfit.schemas.catalog import ProductIn, ProductOut, ProductUpdate

logger = logging.getLogger("dayfit.api.products")

router = APIRouter(prefix="/products", tags=["products"])


def _get_visible(db: Session, user_id: str, product_id: int) -> Product:
    product = (
        db.query(Product)
        .filter(Product.id == product_id)
        .filter(or_(Product.is_default.is_(True), Product.user_id == user_id))
        .first()
    )
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _get_mutable(db: Session, user_id: str, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.is_default:
        raise HTTPException(status_code=403, detail="Default products cannot be modified")
    if product.user_id != user_id:
        raise HTTPException(status_code=403, detail="Not allowed to modify this product")
    return product


def _commit(db: Session, action: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s product: %s", action, e)
        raise HTTPException(status_code=500, detail=f"Failed to {action} product: {e}")


@router.get("", response_model=list[ProductOut])
def list_products(
    search: str | None = None,
    category: str | None = None,
    limit: int = 100,
    offset: int = 0,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    """
    Default products plus the caller's own, defaults first then by name.
    """
    q = db.query(Product).filter(or_(Product.is_default.is_(True), Product.user_id == user.id))
    if search:
        q = q.filter(Product.name.ilike(f"%{search}%"))
    if category:
        q = q.filter(Product.category == category)
    return (
        q.order_by(Product.is_default.desc(), Product.name.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    return _get_visible(db, user.id, product_id)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductIn, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    product = Product(user_id=user.id, is_default=False, **payload.model_dump())
    db.add(product)
    _commit(db, "create")
    db.refresh(product)
    return product


@router.put("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: AuthUser = Depends(current_user),
    db: Session = Depends(get_db),
):
    product = _get_mutable(db, user.id, product_id)
    for name, value in payload.model_dump(exclude_unset=True).items():
        if name == "name" and value is None:
            continue
        setattr(product, name, value)
    _commit(db, "update")
    db.refresh(product)
    return product


@router.delete("/{product_id}")
def delete_product(product_id: int, user: AuthUser = Depends(current_user), db: Session = Depends(get_db)):
    product = _get_mutable(db, user.id, product_id)
    db.delete(product)
    _commit(db, "delete")
    return {"status": "ok", "deleted": product_id}
