"""Orders, product catalog and the admin dashboard counters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from api.core.config import Settings, get_settings
from api.core.errors import NotFoundError, ValidationError
from api.domain.lifecycle import OrderStatus, validate_transition
from api.repositories.sql_repository import SQLRepository
from api.schemas import OrderCreate, ProductCardCreate, ProductCardUpdate
from api.services.serializers import order_to_dict, product_to_dict


@dataclass
class CommerceService:
    repository: Optional[SQLRepository] = None
    settings: Optional[Settings] = field(default=None)

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.repository = self.repository or SQLRepository()

    def stats(self) -> dict:
        return {
            "pendingOrders": self.repository.count_orders(status=OrderStatus.PENDING.value),
            "totalRevenue": self.repository.completed_revenue(),
            "activeUsers": self.repository.count_users(active=True),
            "lowStock": self.repository.count_low_stock(self.settings.low_stock_threshold),
        }

    # -------------------------------------- orders --------------------------------------
    def list_orders(self, status: Optional[str] = None) -> list[dict]:
        if status:
            status = validate_transition(OrderStatus, OrderStatus.PENDING, status).value
        return [order_to_dict(order) for order in self.repository.list_orders(status=status)]

    def get_order(self, order_id: str) -> dict:
        order = self.repository.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order_to_dict(order)

    def create_order(self, payload: OrderCreate) -> dict:
        status = validate_transition(OrderStatus, OrderStatus.PENDING, payload.status)
        values = payload.patch()
        values.update(status=status.value, email=str(payload.email).lower(), items=list(payload.items))
        return order_to_dict(self.repository.create_order(**values))

    def set_order_status(self, order_id: str, status: str, tracking_number: Optional[str] = None) -> dict:
        order = self.repository.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        target = validate_transition(OrderStatus, order.status, status)
        values = {"status": target.value}
        if tracking_number:
            values["tracking_number"] = tracking_number
        return order_to_dict(self.repository.update_order(order.id, **values))

    def delete_order(self, order_id: str) -> None:
        if not self.repository.delete_order(order_id):
            raise NotFoundError("Order not found")

    # -------------------------------------- catalog --------------------------------------
    def list_products(self) -> list[dict]:
        return [product_to_dict(product) for product in self.repository.list_products()]

    def create_product(self, payload: ProductCardCreate) -> dict:
        return product_to_dict(self.repository.create_product(**payload.model_dump()))

    def update_product(self, product_id: str, payload: ProductCardUpdate) -> dict:
        values = {k: v for k, v in payload.patch().items() if v is not None}
        product = self.repository.update_product(product_id, **values) if values else self.repository.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product_to_dict(product)

    def toggle_product(self, product_id: str) -> dict:
        product = self.repository.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product_to_dict(self.repository.update_product(product.id, active=not product.active))

    def delete_product(self, product_id: str) -> None:
        if not self.repository.delete_product(product_id):
            raise NotFoundError("Product not found")

    def low_stock(self, threshold: Optional[int] = None) -> list[dict]:
        if threshold is None:
            threshold = self.settings.low_stock_threshold
        if threshold < 0:
            raise ValidationError("threshold must be >= 0")
        return [product_to_dict(product) for product in self.repository.low_stock_products(threshold)]
