"""Logging de la aplicación.

Por qué un módulo propio:
- Todos los loggers cuelgan del namespace `ngsi2`, así la CLI (o quien embeba
  el cliente) controla el nivel en un único punto.
- El handler de Rich solo se instala desde la CLI; como librería no tocamos
  la configuración global de logging.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "ngsi2"


def get_app_logger(name: str | None = None) -> logging.Logger:
    """Devuelve un logger hijo de `ngsi2` (o el raíz si `name` es None)."""

    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(level: str | int = "WARNING", console: Console | None = None) -> logging.Logger:
    """Instala un `RichHandler` en el logger raíz de la app (idempotente)."""

    logger = get_app_logger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
    logger.propagate = False
    return logger
