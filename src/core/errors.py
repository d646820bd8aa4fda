"""Errores del cliente NGSIv2.

Por qué excepciones propias:
- El broker devuelve un cuerpo JSON estándar (`error`, `description`,
  `affectedItems`); lo exponemos ya parseado como `NgsiError`.
- Los errores de transporte (`httpx.HTTPError`) NO se envuelven: el llamador
  decide si reintentar.
"""

from __future__ import annotations

from core.domain.models import NgsiError


class Ngsi2Exception(Exception):
    """Respuesta no-2xx del broker."""

    def __init__(self, status_code: int, error: NgsiError) -> None:
        self.status_code = status_code
        self.error = error
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"{self.status_code} {self.error.error}"
        if self.error.description:
            text += f": {self.error.description}"
        return text

    @property
    def description(self) -> str | None:
        return self.error.description

    @property
    def affected_items(self) -> list[str]:
        return list(self.error.affected_items or [])


class Ngsi2UnsupportedOperationError(Ngsi2Exception):
    """El broker no implementa la operación pedida (HTTP 501)."""

    def __init__(self, operation_name: str, error: NgsiError | None = None) -> None:
        self.operation_name = operation_name
        if error is None or not error.description:
            error = NgsiError(
                error=error.error if error else "501",
                description=f"this operation '{operation_name}' is not implemented",
            )
        super().__init__(501, error)
