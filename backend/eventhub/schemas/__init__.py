"""
EventHub Backend — API Schemas
================================

Pydantic request/response contracts, one module per router. Every model
derives from `common.CamelModel` so the wire format is camelCase.
"""
