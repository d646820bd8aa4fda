"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite que la CLI dependa del contrato y no del cliente httpx.
"""
