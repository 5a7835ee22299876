"""vCard serialization shared by the download route, the preview page and QR rendering.

Two layouts are produced from one function:

- FULL: vCard 3.0, CRLF line endings, every populated field.
- MINIMAL: vCard 2.1, LF line endings, name, phone and email only. Used to
  keep QR payloads small enough to scan when printed at business-card size.

Names and free-text fields written in Hangul are emitted with
``ENCODING=QUOTED-PRINTABLE`` so that phone address books decode them
correctly when scanning the QR code.
"""

import re
from enum import StrEnum
from urllib.parse import quote

from ..contacts.schemas import ContactFields

_HANGUL = re.compile("[\u1100-\u11ff\u3130-\u318f\uac00-\ud7af]")
_QP_PARAM = ";ENCODING=QUOTED-PRINTABLE"
NO_NAME = "No Name"


class VCardMode(StrEnum):
    FULL = "full"
    MINIMAL = "minimal"


def contains_hangul(text: str) -> bool:
    return bool(text) and _HANGUL.search(text) is not None


def to_quoted_printable(text: str) -> str:
    """Encode every non-printable-ASCII character (plus ``=`` and ``?``) as ``=XX`` UTF-8 bytes."""
    out = []
    for char in text:
        if 32 <= ord(char) <= 126 and char not in "=?":
            out.append(char)
        else:
            out.append("".join(f"={byte:02X}" for byte in char.encode("utf-8")))
    return "".join(out)


def full_name(contact: ContactFields) -> str:
    return f"{contact.first_name} {contact.last_name}".strip()


def vcard_filename(contact: ContactFields) -> str:
    """Percent-encoded ``<full name>.vcf``, safe to put in a header."""
    return f"{quote(full_name(contact) or 'contact', safe='')}.vcf"


def select_mode(contact: ContactFields) -> VCardMode:
    """MINIMAL when the optional job title, website and address are all empty."""
    if contact.job_title or contact.website or contact.address:
        return VCardMode.FULL
    return VCardMode.MINIMAL


def _field(name: str, value: str, encode: bool, suffix: str = "", prefix: str = "") -> str:
    if encode:
        return f"{name}{_QP_PARAM}:{prefix}{to_quoted_printable(value)}{suffix}"
    return f"{name}:{prefix}{value}{suffix}"


def _name_lines(contact: ContactFields, mode: VCardMode) -> list[str]:
    encode = contains_hangul(contact.last_name) or contains_hangul(contact.first_name)
    if encode:
        last, first = to_quoted_printable(contact.last_name), to_quoted_printable(contact.first_name)
    else:
        last, first = contact.last_name, contact.first_name
    param = _QP_PARAM if encode else ""

    if mode is VCardMode.MINIMAL:
        return [f"N{param}:{last};{first}"]
    return [
        f"N{param}:{last};{first};;;",
        _field("FN", full_name(contact) or NO_NAME, encode),
    ]


def format_vcard(contact: ContactFields, mode: VCardMode = VCardMode.FULL) -> str:
    """Serialize a contact as vCard text. Empty fields are left out entirely."""
    phone = contact.phone.replace("-", "")
    lines = ["BEGIN:VCARD"]

    if mode is VCardMode.MINIMAL:
        lines.append("VERSION:2.1")
        lines.extend(_name_lines(contact, mode))
        if phone:
            lines.append(f"TEL:{phone}")
        if contact.email:
            lines.append(f"EMAIL:{contact.email}")
        lines.append("END:VCARD")
        return "\n".join(lines)

    lines.append("VERSION:3.0")
    lines.extend(_name_lines(contact, mode))
    if phone:
        lines.append(f"TEL;TYPE=CELL:{phone}")
    if contact.email:
        lines.append(f"EMAIL;TYPE=INTERNET:{contact.email}")
    if contact.company:
        lines.append(_field("ORG", contact.company, contains_hangul(contact.company)))
    if contact.job_title:
        lines.append(_field("TITLE", contact.job_title, contains_hangul(contact.job_title)))
    if contact.website:
        lines.append(f"URL:{contact.website}")
    if contact.address:
        lines.append(
            _field("ADR;TYPE=WORK", contact.address, contains_hangul(contact.address), suffix=";;;;", prefix=";;")
        )
    lines.append("END:VCARD")
    return "\r\n".join(lines)
