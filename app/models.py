"""
app/models.py — All Pydantic data schemas
Topic records, request bodies and response envelopes.
Wire field names follow the public API (titulo, descricao, votos, ...).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ──────────────────────────────────────────────────────────────────────────────
# Enumerations
# ──────────────────────────────────────────────────────────────────────────────

class TopicStatus(str, Enum):
    SUGGESTION = "Sugestão"
    PUBLISHED = "Publicado"
    COMING_SOON = "Em breve"


class QuotaKind(str, Enum):
    SUGGESTION = "suggestion"
    VOTE = "vote"


class TopicFilter(str, Enum):
    MOST_VOTED = "most_voted"
    MOST_RECENT = "most_recent"
    PUBLISHED = "published"
    COMING_SOON = "coming_soon"


# Tokens accepted by /api/temas/filtrar. The Portuguese names are the ones the
# web client sends; the English names are aliases.
FILTER_TOKENS: dict[str, TopicFilter] = {
    "most_voted": TopicFilter.MOST_VOTED,
    "mais_votados": TopicFilter.MOST_VOTED,
    "most_recent": TopicFilter.MOST_RECENT,
    "mais_recentes": TopicFilter.MOST_RECENT,
    "published": TopicFilter.PUBLISHED,
    "respondidos": TopicFilter.PUBLISHED,
    "coming_soon": TopicFilter.COMING_SOON,
    "em_breve": TopicFilter.COMING_SOON,
}


# ──────────────────────────────────────────────────────────────────────────────
# Topic
# ──────────────────────────────────────────────────────────────────────────────

class Topic(BaseModel):
    id: int
    titulo: str = Field(min_length=1)
    descricao: str = ""
    votos: int = Field(default=0, ge=0)
    status: TopicStatus = TopicStatus.SUGGESTION

    @field_validator("descricao", mode="before")
    @classmethod
    def none_description_to_empty(cls, v: Any) -> Any:
        # Rows created outside the API may carry a NULL description
        return "" if v is None else v


class NewTopic(BaseModel):
    """Topic payload before the store assigns an id."""
    titulo: str = Field(min_length=1)
    descricao: str = ""
    votos: int = Field(default=0, ge=0)
    status: TopicStatus = TopicStatus.SUGGESTION


# ──────────────────────────────────────────────────────────────────────────────
# Requests
# ──────────────────────────────────────────────────────────────────────────────

class SuggestRequest(BaseModel):
    titulo: Optional[str] = None
    descricao: Optional[str] = None


class VoteRequest(BaseModel):
    # Validated by the service so non-integer ids get the API's own 400 message
    id: Optional[Any] = None


class EditRequest(BaseModel):
    titulo: Optional[str] = None
    descricao: Optional[str] = None


class LoginRequest(BaseModel):
    senha: Optional[str] = None


# ──────────────────────────────────────────────────────────────────────────────
# Responses
# ──────────────────────────────────────────────────────────────────────────────

class LoginResponse(BaseModel):
    token: str


class VoteResponse(BaseModel):
    sucesso: bool = True
    votos: int


class DeleteResponse(BaseModel):
    sucesso: bool = True


class ErrorResponse(BaseModel):
    erro: str
    similares: Optional[list[Topic]] = None


class QuotaStatus(BaseModel):
    sugestoes_restantes: Optional[int] = None  # None = unlimited (admin)
    votos_restantes: int
    limite_sugestoes: int
    limite_votos: int
