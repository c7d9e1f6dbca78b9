"""Shared route dependencies: service container and the session resolved by middleware."""

from fastapi import Request

from dimensional_chat.services import Services

from .models import SessionInfo


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session(request: Request) -> SessionInfo:
    """The caller's session, resolved in app.session_middleware before routing."""
    return request.state.session
