# commerce/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce.api.errors import to_http
from commerce.data.database import get_db
from commerce.domain.errors import CommerceError
from commerce.domain.schemas import CartOut, ItemIn, QuantityIn
from commerce.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db=db)


@router.get("/{session_id}", response_model=CartOut)
def get_cart(session_id: str, db: Session = Depends(get_db)):
    return get_service(db).get_cart(session_id)


@router.post("/{session_id}/items", response_model=CartOut)
def add_item(session_id: str, payload: ItemIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.add_item(session_id, payload.product_id, payload.quantity)
    except (CommerceError, ValueError) as e:
        raise to_http(e)


@router.put("/{session_id}/items/{product_id}", response_model=CartOut)
def update_item(session_id: str, product_id: int, payload: QuantityIn, db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return svc.update_quantity(session_id, product_id, payload.quantity)
    except (CommerceError, ValueError) as e:
        raise to_http(e)


@router.delete("/{session_id}/items/{product_id}", response_model=CartOut)
def remove_item(session_id: str, product_id: int, db: Session = Depends(get_db)):
    return get_service(db).remove_item(session_id, product_id)


@router.delete("/{session_id}", status_code=204)
def clear_cart(session_id: str, db: Session = Depends(get_db)):
    get_service(db).clear(session_id)
