"""
app/routers/admin.py — Admin login and topic curation
Endpoints: POST /api/admin/login, PUT /api/temas/{id}, DELETE /api/temas/{id}
Edit and delete require `Authorization: Bearer <admin token>` (403 otherwise).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.core.auth import AdminGate, get_admin_gate, require_admin
from app.core.rate_limiter import RATE_LIMITS, limiter
from app.models import (
    DeleteResponse,
    EditRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    Topic,
)
from app.services.topic_service import TopicService, get_topic_service

router = APIRouter()


@router.post(
    "/admin/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["login"])
def admin_login(
    request: Request,
    body: LoginRequest,
    gate: AdminGate = Depends(get_admin_gate),
) -> LoginResponse:
    return LoginResponse(token=gate.login(body.senha))


@router.put(
    "/temas/{topic_id}",
    response_model=Topic,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["admin"])
def edit_topic(
    request: Request,
    topic_id: int,
    body: Optional[EditRequest] = None,
    _admin: bool = Depends(require_admin),
    service: TopicService = Depends(get_topic_service),
) -> Topic:
    """Update title and/or description. Blank fields are ignored."""
    body = body or EditRequest()
    return service.edit(topic_id, titulo=body.titulo, descricao=body.descricao)


@router.delete(
    "/temas/{topic_id}",
    response_model=DeleteResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
@limiter.limit(RATE_LIMITS["admin"])
def delete_topic(
    request: Request,
    topic_id: int,
    _admin: bool = Depends(require_admin),
    service: TopicService = Depends(get_topic_service),
) -> DeleteResponse:
    service.delete(topic_id)
    return DeleteResponse()
