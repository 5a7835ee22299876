"""Contact service: validation, id derivation and display helpers."""

from urllib.parse import quote

from .schemas import ContactCreateRequest, ContactFields, ContactRecord

REQUIRED_ANY = ("first_name", "last_name", "phone", "email")


def has_required_fields(contact: ContactFields) -> bool:
    """At least one of name, surname, phone or email must be filled in."""
    return any(getattr(contact, name) for name in REQUIRED_ANY)


def derive_contact_id(contact: ContactFields) -> str:
    """Surname + given name, falling back to the phone digits and then the email."""
    explicit = getattr(contact, "id", "")
    if explicit:
        return explicit
    name_id = f"{contact.last_name}{contact.first_name}"
    if name_id:
        return name_id
    return contact.phone.replace("-", "") or contact.email


def build_record(payload: ContactCreateRequest) -> ContactRecord:
    """Normalize an incoming payload into a record ready for the store."""
    data = payload.model_dump()
    data["id"] = derive_contact_id(payload)
    return ContactRecord(**data)


def contact_url(contact_id: str) -> str:
    return f"/contact/{quote(contact_id, safe='')}"
