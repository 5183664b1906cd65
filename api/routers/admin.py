from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from api.core.responses import success_response
from api.dependencies import card_service, commerce_service, profile_service, user_service
from api.schemas import (
    AdminProfileUpdate,
    AdminUserUpdate,
    ClientCardCreate,
    ClientCardUpdate,
    OrderCreate,
    ProductCardCreate,
    ProductCardUpdate,
    RoleUpdate,
    StatusUpdate,
)
from api.services.card_service import CardService
from api.services.commerce_service import CommerceService
from api.services.profile_service import ProfileService
from api.services.serializers import client_card_to_dict
from api.services.session_service import require_admin
from api.services.user_service import UserService

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def stats(service: CommerceService = Depends(commerce_service)):
    return success_response(service.stats())


# -------------------------------------- orders --------------------------------------
@router.get("/orders")
def list_orders(status: Optional[str] = None, service: CommerceService = Depends(commerce_service)):
    return success_response(service.list_orders(status))


@router.post("/orders", status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, service: CommerceService = Depends(commerce_service)):
    return success_response(service.create_order(payload), "Order created")


@router.get("/orders/{order_id}")
def get_order(order_id: str, service: CommerceService = Depends(commerce_service)):
    return success_response(service.get_order(order_id))


@router.put("/orders/{order_id}/status")
def update_order_status(order_id: str, payload: StatusUpdate, service: CommerceService = Depends(commerce_service)):
    return success_response(service.set_order_status(order_id, payload.status, payload.tracking_number))


@router.delete("/orders/{order_id}")
def delete_order(order_id: str, service: CommerceService = Depends(commerce_service)):
    service.delete_order(order_id)
    return success_response(None, "Order deleted")


# -------------------------------------- product catalog --------------------------------------
@router.get("/cards")
def list_products(service: CommerceService = Depends(commerce_service)):
    return success_response(service.list_products())


@router.get("/cards/low-stock")
def low_stock(threshold: Optional[int] = Query(None), service: CommerceService = Depends(commerce_service)):
    return success_response(service.low_stock(threshold))


@router.post("/cards", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCardCreate, service: CommerceService = Depends(commerce_service)):
    return success_response(service.create_product(payload), "Product created")


@router.put("/cards/{product_id}")
def update_product(product_id: str, payload: ProductCardUpdate, service: CommerceService = Depends(commerce_service)):
    return success_response(service.update_product(product_id, payload))


@router.put("/cards/{product_id}/toggle")
def toggle_product(product_id: str, service: CommerceService = Depends(commerce_service)):
    return success_response(service.toggle_product(product_id))


@router.delete("/cards/{product_id}")
def delete_product(product_id: str, service: CommerceService = Depends(commerce_service)):
    service.delete_product(product_id)
    return success_response(None, "Product deleted")


# -------------------------------------- users --------------------------------------
@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=100),
    search: Optional[str] = None,
    service: UserService = Depends(user_service),
):
    items, _total = service.list_users(page=page, limit=limit, search=search)
    return success_response(items)


@router.put("/users/{user_id}/role")
def set_user_role(user_id: str, payload: RoleUpdate, service: UserService = Depends(user_service)):
    return success_response(service.set_role(user_id, payload.role))


@router.put("/users/{user_id}")
def update_user(user_id: str, payload: AdminUserUpdate, service: UserService = Depends(user_service)):
    return success_response(service.admin_update(user_id, payload))


@router.delete("/users/{user_id}")
def delete_user(user_id: str, service: UserService = Depends(user_service)):
    service.purge(user_id)
    return success_response(None, "User deleted")


# -------------------------------------- profiles --------------------------------------
@router.get("/profiles")
def list_profiles(service: ProfileService = Depends(profile_service)):
    return success_response(service.admin_list())


@router.put("/profiles/{profile_id}/toggle-public")
def toggle_profile(profile_id: str, service: ProfileService = Depends(profile_service)):
    return success_response(service.toggle_public(profile_id))


@router.put("/profiles/{profile_id}")
def update_profile(profile_id: str, payload: AdminProfileUpdate, service: ProfileService = Depends(profile_service)):
    return success_response(service.admin_update(profile_id, payload))


@router.delete("/profiles/{profile_id}")
def delete_profile(profile_id: str, service: ProfileService = Depends(profile_service)):
    service.admin_delete(profile_id)
    return success_response(None, "Profile deleted")


# -------------------------------------- client cards --------------------------------------
@router.get("/client-cards")
def list_client_cards(service: CardService = Depends(card_service)):
    return success_response(service.admin_list())


@router.post("/client-cards", status_code=status.HTTP_201_CREATED)
def create_client_card(payload: ClientCardCreate, service: CardService = Depends(card_service)):
    return success_response(service.admin_create(payload), "Card created")


@router.get("/client-cards/order/{order_id}")
def client_cards_by_order(order_id: str, service: CardService = Depends(card_service)):
    return success_response(service.admin_by_order(order_id))


@router.get("/client-cards/serial/{serial}")
def client_card_by_serial(serial: str, service: CardService = Depends(card_service)):
    return success_response(client_card_to_dict(service.get_by_serial(serial)))


@router.get("/client-cards/{card_id}")
def get_client_card(card_id: str, service: CardService = Depends(card_service)):
    return success_response(client_card_to_dict(service.get(card_id)))


@router.put("/client-cards/{card_id}/status")
def update_client_card_status(card_id: str, payload: StatusUpdate, service: CardService = Depends(card_service)):
    return success_response(service.admin_set_status(card_id, payload.status, payload.tracking_number))


@router.put("/client-cards/{card_id}")
def update_client_card(card_id: str, payload: ClientCardUpdate, service: CardService = Depends(card_service)):
    return success_response(service.admin_update(card_id, payload))


@router.delete("/client-cards/{card_id}")
def delete_client_card(card_id: str, service: CardService = Depends(card_service)):
    service.admin_delete(card_id)
    return success_response(None, "Card deleted")
