from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.core.responses import success_response
from api.dependencies import analytics_service
from api.services.analytics_service import AnalyticsService
from api.services.session_service import require_admin

router = APIRouter(prefix="/api/analytics", tags=["analytics"], dependencies=[Depends(require_admin)])


@router.get("")
def dashboard(period: Optional[str] = None, service: AnalyticsService = Depends(analytics_service)):
    return success_response(service.dashboard(period))


@router.get("/daily")
def daily(period: Optional[str] = None, service: AnalyticsService = Depends(analytics_service)):
    return success_response(service.daily(period))


@router.get("/top-profiles")
def top_profiles(
    period: Optional[str] = None,
    limit: int = Query(5, ge=1, le=50),
    service: AnalyticsService = Depends(analytics_service),
):
    return success_response(service.top_profiles(period, limit))


@router.get("/devices")
def devices(period: Optional[str] = None, service: AnalyticsService = Depends(analytics_service)):
    return success_response(service.devices(period))


@router.get("/countries")
def countries(
    period: Optional[str] = None,
    limit: int = Query(5, ge=1, le=50),
    service: AnalyticsService = Depends(analytics_service),
):
    return success_response(service.countries(period, limit))
