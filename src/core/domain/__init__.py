"""Modelos del dominio NGSIv2.

Por qué:
- Aquí viven las estructuras de datos del API (Pydantic v2).
- El dominio no conoce HTTP, CLI, ni SDKs: solo conceptos del broker.
"""
