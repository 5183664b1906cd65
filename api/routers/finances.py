from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from api.core.responses import paginated_response, success_response
from api.db.models import User
from api.dependencies import finance_service
from api.schemas import BillCreate, PaymentCardCreate, PhysicalCardOrder, PhysicalCardUpdate
from api.services.finance_service import FinanceService
from api.services.session_service import current_user, require_admin

router = APIRouter(prefix="/api/finances", tags=["finances"])


@router.get("/overview")
def overview(user: User = Depends(current_user), service: FinanceService = Depends(finance_service)):
    return success_response(service.overview(user))


# -------------------------------------- payment cards --------------------------------------
@router.get("/payment-cards")
def payment_cards(user: User = Depends(current_user), service: FinanceService = Depends(finance_service)):
    return success_response(service.payment_cards(user))


@router.post("/payment-cards", status_code=status.HTTP_201_CREATED)
def add_payment_card(
    payload: PaymentCardCreate,
    user: User = Depends(current_user),
    service: FinanceService = Depends(finance_service),
):
    return success_response(service.add_card(user, payload), "Payment card added")


@router.delete("/payment-cards/{card_id}")
def remove_payment_card(
    card_id: str, user: User = Depends(current_user), service: FinanceService = Depends(finance_service)
):
    service.remove_card(user, card_id)
    return success_response(None, "Payment card removed")


@router.put("/payment-cards/{card_id}/default")
def set_default_card(
    card_id: str, user: User = Depends(current_user), service: FinanceService = Depends(finance_service)
):
    return success_response(service.set_default(user, card_id))


# -------------------------------------- subscription / bills --------------------------------------
@router.get("/subscription")
def subscription(user: User = Depends(current_user), service: FinanceService = Depends(finance_service)):
    return success_response(service.subscription(user))


@router.get("/bills")
def bills(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(current_user),
    service: FinanceService = Depends(finance_service),
):
    items, total = service.bills(user, page=page, limit=limit)
    return paginated_response(items, page, limit, total)


@router.post("/bills", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_bill(payload: BillCreate, service: FinanceService = Depends(finance_service)):
    return success_response(service.create_bill(payload), "Bill created")


# -------------------------------------- physical cards --------------------------------------
@router.get("/physical-cards")
def physical_cards(user: User = Depends(current_user), service: FinanceService = Depends(finance_service)):
    return success_response(service.physical_cards(user))


@router.post("/physical-cards", status_code=status.HTTP_201_CREATED)
def order_physical_card(
    payload: PhysicalCardOrder,
    user: User = Depends(current_user),
    service: FinanceService = Depends(finance_service),
):
    return success_response(service.order_physical_card(user, payload.type), "Card ordered")


@router.put("/physical-cards/{card_id}", dependencies=[Depends(require_admin)])
def update_physical_card(card_id: str, payload: PhysicalCardUpdate, service: FinanceService = Depends(finance_service)):
    return success_response(service.update_physical_card(card_id, payload))
