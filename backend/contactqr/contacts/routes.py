"""Contact JSON routes and per-contact vCard / QR downloads."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response

from ..config import settings
from ..dependencies import get_store
from ..integrations.qr import render_qr_data_url, render_qr_png
from ..vcard.formatter import format_vcard, select_mode, vcard_filename
from .schemas import ContactCreateRequest, ContactDeleteRequest, ContactFields
from .service import build_record, contact_url, has_required_fields
from .store import ContactStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contacts"])

MSG_REQUIRED = "Enter at least a name, phone number or email."
MSG_ID_REQUIRED = "An id is required."
MSG_NOT_FOUND = "Contact not found."


@router.get("/contacts")
def list_contacts(store: ContactStore = Depends(get_store)):
    # Read errors degrade to an empty mapping so the admin screen keeps working.
    try:
        contacts = store.list_all()
    except Exception:
        logger.exception("Failed to list contacts")
        return JSONResponse({})
    return JSONResponse({cid: c.to_json() for cid, c in contacts.items()})


@router.post("/contacts")
def save_contact(body: ContactCreateRequest, store: ContactStore = Depends(get_store)):
    if not has_required_fields(body):
        return JSONResponse({"error": MSG_REQUIRED}, status_code=400)

    record = build_record(body)
    result = store.put(record)
    if not result.success:
        return JSONResponse({"error": result.message}, status_code=500)

    logger.info("Contact saved: id=%r (%s)", result.contact.id, result.message)
    return JSONResponse(
        {
            "success": True,
            "message": result.message,
            "contact": result.contact.to_json(),
            "url": contact_url(result.contact.id),
        }
    )


@router.delete("/contacts")
def delete_contact(body: ContactDeleteRequest | None = None, store: ContactStore = Depends(get_store)):
    if body is None or not body.id:
        return JSONResponse({"error": MSG_ID_REQUIRED}, status_code=400)

    result = store.delete(body.id)
    if not result.success:
        status_code = 404 if result.not_found else 500
        return JSONResponse({"error": result.message}, status_code=status_code)

    logger.info("Contact deleted: id=%r", body.id)
    return JSONResponse({"success": True, "message": result.message})


@router.get("/contact/{contact_id:path}/vcard")
def download_vcard(contact_id: str, store: ContactStore = Depends(get_store)):
    try:
        contact = store.get(contact_id)
        if contact is None:
            return JSONResponse({"error": MSG_NOT_FOUND}, status_code=404)

        filename = vcard_filename(contact)
        return Response(
            format_vcard(contact),
            media_type="text/vcard; charset=utf-8",
            headers={
                "Content-Disposition": f"attachment; filename=\"{filename}\"; filename*=UTF-8''{filename}",
                "Cache-Control": f"public, max-age={settings.vcard_cache_seconds}",
            },
        )
    except Exception:
        logger.exception("vCard generation failed for %r", contact_id)
        return JSONResponse({"error": "An error occurred while generating the vCard."}, status_code=500)


@router.get("/contact/{contact_id:path}/qr.png")
def contact_qr(contact_id: str, store: ContactStore = Depends(get_store)):
    contact = store.get(contact_id)
    if contact is None:
        return JSONResponse({"error": MSG_NOT_FOUND}, status_code=404)

    png = render_qr_png(format_vcard(contact, select_mode(contact)))
    return Response(
        png,
        media_type="image/png",
        headers={"Cache-Control": f"public, max-age={settings.vcard_cache_seconds}"},
    )


@router.post("/qr")
def preview_qr(body: ContactFields):
    """Render the generator form's fields as a QR data URL without saving anything."""
    if not has_required_fields(body):
        return JSONResponse({"error": MSG_REQUIRED}, status_code=400)

    mode = select_mode(body)
    vcard = format_vcard(body, mode)
    return JSONResponse({"vcard": vcard, "mode": mode.value, "dataUrl": render_qr_data_url(vcard)})
