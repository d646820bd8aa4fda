"""Construcción del cliente usado por los comandos.

Por qué un módulo aparte:
- `main` y `doctor` comparten la misma factoría sin importarse entre sí.
- Los tests sustituyen `build_client` para inyectar un transporte falso.
"""

from __future__ import annotations

from adapters.ngsi2_client import Ngsi2Client
from core.config import AppSettings


def build_client(settings: AppSettings) -> Ngsi2Client:
    return Ngsi2Client(settings=settings)
