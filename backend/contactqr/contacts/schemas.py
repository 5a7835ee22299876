"""Contact request/response schemas."""

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

CONTACT_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "email",
    "company",
    "job_title",
    "website",
    "address",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def _normalize(cls, value):
        """null becomes "", surrounding whitespace is dropped."""
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value


class ContactFields(_CamelModel):
    """The user-editable part of a contact, as submitted by the generator form."""

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str = ""
    company: str = ""
    job_title: str = ""
    website: str = ""
    address: str = ""


class ContactCreateRequest(ContactFields):
    id: str = ""


class ContactRecord(ContactCreateRequest):
    created_at: str = ""
    updated_at: str = ""

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class ContactDeleteRequest(_CamelModel):
    id: str = ""
