"""Shared FastAPI dependencies."""

from fastapi import Request

from .contacts.store import ContactStore


def get_store(request: Request) -> ContactStore:
    """Get the contact store built at startup from app state."""
    return request.app.state.store
