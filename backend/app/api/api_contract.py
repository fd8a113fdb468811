import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from fastapi.responses import ORJSONResponse, Response
from sqlalchemy.orm import Session

from .. import models
from ..crud import crud_contract
from ..database import get_db
from ..models import ContractStatus
from ..schemas.contract import (
    ContractCreate,
    ContractResponse,
    ContractSignIn,
    ContractTemplateInfo,
)
from ..services import contract_pdf, contract_service, contract_templates
from ..utils import error_response
from .dependencies import get_current_admin, get_current_user

router = APIRouter(tags=["contracts"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _get_visible_contract(db: Session, contract_id: int, current_user: models.User) -> models.Contract:
    contract = crud_contract.get_contract(db, contract_id)
    if contract is None:
        raise error_response("Contract not found", {"contract_id": "not_found"}, status.HTTP_404_NOT_FOUND)
    if not crud_contract.can_view(contract, current_user):
        raise error_response(
            "You do not have access to this contract",
            {"contract_id": "forbidden"},
            status.HTTP_403_FORBIDDEN,
        )
    return contract


@router.get("/contract-templates", response_model=List[ContractTemplateInfo])
def list_contract_templates(current_user: models.User = Depends(get_current_admin)):
    return [
        ContractTemplateInfo(id=t.id, name=t.name, description=t.description, category=t.category)
        for t in contract_templates.list_templates()
    ]


@router.post("/contracts", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
def create_contract(
    payload: ContractCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return contract_service.create_contract(
        db,
        payload.booking_id,
        payload.booking_talent_id,
        current_user,
        template_id=payload.template_id,
        due_date=payload.due_date,
    )


@router.get("/contracts", response_model=List[ContractResponse])
def list_contracts(
    booking_id: Optional[int] = None,
    status_filter: Optional[ContractStatus] = Query(default=None, alias="status"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    items, _ = crud_contract.list_for_user(
        db, current_user, booking_id=booking_id, status=status_filter, skip=skip, limit=limit
    )
    return items


@router.get("/contracts/{contract_id}", response_model=ContractResponse)
def read_contract(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return _get_visible_contract(db, contract_id, current_user)


@router.get("/contracts/{contract_id}/pdf")
def download_contract_pdf(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    """Render the stored contract content as a PDF download."""
    contract = _get_visible_contract(db, contract_id, current_user)
    pdf_bytes = contract_pdf.generate_pdf(contract.title, contract.content)
    filename = f"contract_{contract.booking.code}_{contract.id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.post("/contracts/{contract_id}/send", response_model=ContractResponse)
def send_contract(
    contract_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    return contract_service.send_contract_for_signing(db, contract_id, current_user, background_tasks)


@router.post("/contracts/{contract_id}/sign", response_model=ContractResponse)
def sign_contract(
    contract_id: int,
    payload: ContractSignIn,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    ip_address = request.client.host if request.client else None
    return contract_service.sign_contract(
        db,
        contract_id,
        current_user,
        payload.signature_image_url,
        ip_address,
        request.headers.get("user-agent"),
        background_tasks,
    )
