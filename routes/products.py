from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload
from typing import List

from core.db import get_db
from core.tenancy import get_current_seller
from models.seller import Seller
from models.product import Product, ProductVariant
from schemas.product import ProductCreate, ProductUpdate, ProductOut, VariantIn

router = APIRouter(prefix="/products", tags=["products"])


def _get_owned_product(db: Session, seller: Seller, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.seller_id == seller.id, Product.id == product_id)
        .one_or_none()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _check_unique_variants(variants: List[VariantIn]) -> None:
    keys = [(v.size, v.color) for v in variants]
    if len(keys) != len(set(keys)):
        raise HTTPException(status_code=400, detail="Duplicate size/color variant")


@router.get("/", response_model=List[ProductOut])
def list_products(seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    return (
        db.query(Product)
        .options(selectinload(Product.variants))
        .filter(Product.seller_id == seller.id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    # Slugs are unique per seller
    existing = db.query(Product).filter(Product.seller_id == seller.id, Product.slug == data.slug).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists in your catalog")
    _check_unique_variants(data.variants)

    product = Product(
        seller_id=seller.id,
        name=data.name.strip(),
        slug=data.slug,
        description=data.description,
        category=data.category,
        price=data.price,
        image_url=data.image_url,
        is_active=True,
        variants=[ProductVariant(size=v.size, color=v.color, stock=v.stock) for v in data.variants],
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    return _get_owned_product(db, seller, product_id)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, data: ProductUpdate, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    product = _get_owned_product(db, seller, product_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return product


@router.put("/{product_id}/variants", response_model=ProductOut)
def replace_variants(product_id: int, variants: List[VariantIn], seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    """Set stock per size/color. Variants missing from the payload are removed."""
    product = _get_owned_product(db, seller, product_id)
    if not variants:
        raise HTTPException(status_code=400, detail="A product needs at least one variant")
    _check_unique_variants(variants)

    existing = {(v.size, v.color): v for v in product.variants}
    wanted = {(v.size, v.color): v for v in variants}
    for key, variant in existing.items():
        if key not in wanted:
            product.variants.remove(variant)
    for key, incoming in wanted.items():
        if key in existing:
            existing[key].stock = incoming.stock
        else:
            product.variants.append(ProductVariant(size=incoming.size, color=incoming.color, stock=incoming.stock))

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, seller: Seller = Depends(get_current_seller), db: Session = Depends(get_db)):
    product = _get_owned_product(db, seller, product_id)
    db.delete(product)
    db.commit()
    return None
