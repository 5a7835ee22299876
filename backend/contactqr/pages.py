"""Page routes for the generator, admin and public contact preview (SSR)."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse

from .contacts.service import contact_url
from .contacts.store import ContactStore
from .dependencies import get_store
from .vcard.formatter import format_vcard, full_name

router = APIRouter(tags=["pages"])

SAMPLE_CONTACTS = {
    "sample": {
        "firstName": "길동",
        "lastName": "홍",
        "phone": "010-1234-5678",
        "email": "hgd@abc.kr",
        "company": "ABC",
    },
    "minimal": {
        "firstName": "길동",
        "lastName": "홍",
        "phone": "01012345678",
    },
}


@router.get("/", response_class=HTMLResponse)
def generator_page(request: Request):
    templates = request.app.state.templates
    return templates.TemplateResponse(
        request,
        "index.html",
        {"active_page": "generator", "samples": SAMPLE_CONTACTS},
    )


@router.get("/admin", response_class=HTMLResponse)
def admin_page(request: Request, store: ContactStore = Depends(get_store)):
    templates = request.app.state.templates
    contacts = sorted(store.list_all().values(), key=lambda c: c.updated_at, reverse=True)
    return templates.TemplateResponse(
        request,
        "admin.html",
        {
            "active_page": "admin",
            "contacts": contacts,
            "contact_url": contact_url,
            "full_name": full_name,
            "backend": store.backend,
        },
    )


@router.get("/contact/{contact_id:path}", response_class=HTMLResponse)
def contact_page(contact_id: str, request: Request, store: ContactStore = Depends(get_store)):
    contact = store.get(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")

    templates = request.app.state.templates
    url = contact_url(contact.id)
    name = full_name(contact)
    return templates.TemplateResponse(
        request,
        "contact.html",
        {
            "contact": contact,
            "full_name": name,
            "initials": f"{contact.first_name[:1]}{contact.last_name[:1]}",
            "vcard": format_vcard(contact),
            "download_name": f"{name or 'contact'}.vcf",
            "vcard_url": f"{url}/vcard",
            "qr_url": f"{url}/qr.png",
        },
    )
