"""
app/routers/api.py — Public topic endpoints
Endpoints: /api/temas, /api/sugerir, /api/votar, /api/similares,
           /api/temas/filtrar, /api/limites
No auth required; /api/sugerir and /api/limites honour an optional admin bearer.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from app.core.auth import optional_admin
from app.core.rate_limiter import RATE_LIMITS, get_client_key, limiter
from app.models import (
    ErrorResponse,
    QuotaStatus,
    SuggestRequest,
    Topic,
    VoteRequest,
    VoteResponse,
)
from app.services.topic_service import TopicService, get_topic_service

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("/temas", response_model=list[Topic], responses={500: _ERRORS[500]})
@limiter.limit(RATE_LIMITS["read"])
def list_topics(
    request: Request,
    service: TopicService = Depends(get_topic_service),
) -> list[Topic]:
    """All topics, most voted first."""
    return service.list_topics()


@router.post(
    "/sugerir",
    response_model=Topic,
    responses={k: _ERRORS[k] for k in (400, 409, 429, 500)},
)
@limiter.limit(RATE_LIMITS["suggest"])
def suggest_topic(
    request: Request,
    body: SuggestRequest,
    is_admin: bool = Depends(optional_admin),
    service: TopicService = Depends(get_topic_service),
) -> Topic:
    """
    Propose a new topic.
    Non-admin callers are capped per client; titles overlapping an existing
    topic are rejected with 409 and the matches under `similares`.
    """
    return service.suggest(
        titulo=body.titulo,
        descricao=body.descricao,
        client_key=get_client_key(request),
        is_admin=is_admin,
    )


@router.post(
    "/votar",
    response_model=VoteResponse,
    responses={k: _ERRORS[k] for k in (400, 404, 429, 500)},
)
@limiter.limit(RATE_LIMITS["vote"])
def vote_topic(
    request: Request,
    body: VoteRequest,
    service: TopicService = Depends(get_topic_service),
) -> VoteResponse:
    votos = service.vote(body.id, client_key=get_client_key(request))
    return VoteResponse(votos=votos)


@router.get("/similares", response_model=list[Topic])
@limiter.limit(RATE_LIMITS["read"])
def similar_topics(
    request: Request,
    q: Optional[str] = None,
    service: TopicService = Depends(get_topic_service),
) -> list[Topic]:
    return service.similar(q)


@router.get("/temas/filtrar", response_model=list[Topic])
@limiter.limit(RATE_LIMITS["read"])
def filter_topics(
    request: Request,
    filtro: Optional[str] = None,
    service: TopicService = Depends(get_topic_service),
) -> list[Topic]:
    """filtro: mais_votados | mais_recentes | respondidos | em_breve (or English aliases)."""
    return service.filter_topics(filtro)


@router.get("/limites", response_model=QuotaStatus)
@limiter.limit(RATE_LIMITS["read"])
def quota_status(
    request: Request,
    is_admin: bool = Depends(optional_admin),
    service: TopicService = Depends(get_topic_service),
) -> QuotaStatus:
    """Remaining suggestion and vote slots for the calling client."""
    return service.quota_status(get_client_key(request), is_admin=is_admin)
