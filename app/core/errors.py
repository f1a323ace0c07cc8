"""
app/core/errors.py — Request-terminal error taxonomy
Raised by the topic service and admin gate, rendered as {"erro": ...} by main.py.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

from app.models import Topic


class TopicError(Exception):
    """Base class. Each subclass maps to one HTTP status."""

    status_code: int = 500
    default_message: str = "Erro interno."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"erro": self.message}


class InvalidInput(TopicError):
    status_code = 400
    default_message = "Requisição inválida."


class AuthFailed(TopicError):
    status_code = 401
    default_message = "Senha incorreta."


class Forbidden(TopicError):
    status_code = 403
    default_message = "Acesso restrito ao administrador."


class NotFound(TopicError):
    status_code = 404
    default_message = "Tema não encontrado."


class DuplicateFound(TopicError):
    status_code = 409
    default_message = "Tema similar já existe."

    def __init__(self, similares: Sequence[Topic], message: Optional[str] = None) -> None:
        self.similares = list(similares)
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        return {
            "erro": self.message,
            "similares": [t.model_dump(mode="json") for t in self.similares],
        }


class QuotaExceeded(TopicError):
    status_code = 429
    default_message = "Limite atingido."


class StoreFailure(TopicError):
    status_code = 500
    default_message = "Erro ao acessar os temas."
