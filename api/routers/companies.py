from __future__ import annotations

from fastapi import APIRouter, Depends, status

from api.core.responses import success_response
from api.dependencies import company_service
from api.schemas import CardAssign, CompanyCreate, CompanyUpdate, EmployeeAdd
from api.services.company_service import CompanyService
from api.services.session_service import require_admin

router = APIRouter(prefix="/api/companies", tags=["companies"], dependencies=[Depends(require_admin)])


@router.get("")
def list_companies(service: CompanyService = Depends(company_service)):
    return success_response(service.list_companies())


@router.post("", status_code=status.HTTP_201_CREATED)
def create_company(payload: CompanyCreate, service: CompanyService = Depends(company_service)):
    return success_response(service.create(payload), "Company created")


@router.get("/{company_id}")
def get_company(company_id: str, service: CompanyService = Depends(company_service)):
    return success_response(service.get(company_id))


@router.put("/{company_id}")
def update_company(company_id: str, payload: CompanyUpdate, service: CompanyService = Depends(company_service)):
    return success_response(service.update(company_id, payload))


@router.delete("/{company_id}")
def delete_company(company_id: str, service: CompanyService = Depends(company_service)):
    service.delete(company_id)
    return success_response(None, "Company deleted")


@router.get("/{company_id}/employees")
def list_employees(company_id: str, service: CompanyService = Depends(company_service)):
    return success_response(service.employees(company_id))


@router.post("/{company_id}/employees", status_code=status.HTTP_201_CREATED)
def add_employee(company_id: str, payload: EmployeeAdd, service: CompanyService = Depends(company_service)):
    return success_response(service.add_employee(company_id, payload), "Employee added")


@router.delete("/{company_id}/employees/{user_id}")
def remove_employee(company_id: str, user_id: str, service: CompanyService = Depends(company_service)):
    service.remove_employee(company_id, user_id)
    return success_response(None, "Employee removed")


@router.post("/{company_id}/employees/{user_id}/assign-card")
def assign_card(
    company_id: str,
    user_id: str,
    payload: CardAssign,
    service: CompanyService = Depends(company_service),
):
    return success_response(service.assign_card(company_id, user_id, payload.card_id), "Card assigned")


@router.post("/{company_id}/employees/{user_id}/unassign-card/{card_id}")
def unassign_card(
    company_id: str,
    user_id: str,
    card_id: str,
    service: CompanyService = Depends(company_service),
):
    return success_response(service.unassign_card(company_id, user_id, card_id), "Card unassigned")


@router.get("/{company_id}/cards")
def list_company_cards(company_id: str, service: CompanyService = Depends(company_service)):
    return success_response(service.cards(company_id))


@router.get("/{company_id}/stats")
def company_stats(company_id: str, service: CompanyService = Depends(company_service)):
    return success_response(service.stats(company_id))
