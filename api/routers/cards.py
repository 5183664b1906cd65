from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.core.rate_limiter import client_ip
from api.core.responses import success_response
from api.db.models import User
from api.dependencies import card_service
from api.schemas import ActivateCardRequest, ScanRequest
from api.services.card_service import CardService, ScanContext
from api.services.session_service import current_user

router = APIRouter(prefix="/api/cards", tags=["cards"])

COUNTRY_HEADERS = ("cf-ipcountry", "x-country-code")
CITY_HEADERS = ("x-city",)


def _header(request: Request, names: tuple[str, ...]) -> str | None:
    for name in names:
        value = (request.headers.get(name) or "").strip()
        # Cloudflare reports XX for unknown and T1 for Tor
        if value and value.upper() not in ("XX", "T1"):
            return value
    return None


def scan_context(request: Request) -> ScanContext:
    country = _header(request, COUNTRY_HEADERS)
    return ScanContext(
        ip_address=client_ip(request),
        country=country.upper() if country else None,
        city=_header(request, CITY_HEADERS),
    )


@router.get("/setup/{serial}")
def setup_info(serial: str, service: CardService = Depends(card_service)):
    return success_response(service.setup_info(serial))


@router.get("/redirect/{serial}")
def redirect_info(serial: str, service: CardService = Depends(card_service)):
    return success_response(service.redirect_info(serial))


@router.post("/activate")
def activate(
    payload: ActivateCardRequest,
    user: User = Depends(current_user),
    service: CardService = Depends(card_service),
):
    return success_response(service.activate(user, payload.serial_number, payload.profile_id), "Card activated")


@router.get("/my-cards")
def my_cards(user: User = Depends(current_user), service: CardService = Depends(card_service)):
    return success_response(service.my_cards(user))


@router.post("/scan")
def record_scan(payload: ScanRequest, request: Request, service: CardService = Depends(card_service)):
    result = service.record_scan(
        payload.serial_number,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        referer=payload.referer or request.headers.get("referer"),
        context=scan_context(request),
    )
    return success_response(result)


@router.get("/analytics")
def my_analytics(user: User = Depends(current_user), service: CardService = Depends(card_service)):
    return success_response(service.user_analytics(user))


@router.get("/analytics/{card_id}")
def card_analytics(card_id: str, user: User = Depends(current_user), service: CardService = Depends(card_service)):
    return success_response(service.card_analytics(user, card_id))
