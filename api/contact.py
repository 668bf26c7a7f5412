import logging

from fastapi import APIRouter, Depends

import crud
import schemas
from dependencies import get_current_admin, get_db
from errors import NotFound
from ledger import best_effort
from notifications import Notifier, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contact", tags=["contact"])


@router.post("", response_model=schemas.ContactCreatedResponse, status_code=201)
async def submit_contact_form(
    body: schemas.ContactCreate,
    db=Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    contact = await crud.create_contact(db, body)
    logger.info(f"📨 Contact submission {contact['id']} received")

    # neither email may fail the submission
    await best_effort("contact_receipt", lambda: notifier.send_contact_receipt(contact))
    await best_effort("contact_alert", lambda: notifier.send_contact_alert(contact))

    return {"success": True, "message": "Your message has been sent.", "contact_id": contact["id"]}


# ========== ADMIN ROUTES ==========
@router.get("/admin/all", response_model=schemas.ContactListResponse)
async def read_all_contacts(db=Depends(get_db), current_admin: dict = Depends(get_current_admin)):
    contacts = await crud.get_contacts(db)
    return {"success": True, "count": len(contacts), "contacts": contacts}


@router.put("/{contact_id}/status", response_model=schemas.Envelope)
async def update_contact_status(
    contact_id: int,
    body: schemas.ContactStatusUpdate,
    db=Depends(get_db),
    current_admin: dict = Depends(get_current_admin),
):
    if await crud.update_contact_status(db, contact_id, body.status) is None:
        raise NotFound("Contact not found")
    return {"success": True, "message": "Contact status updated"}
