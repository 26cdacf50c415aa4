"""
Provider registry endpoints.
"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("")
async def list_providers(request: Request):
    """List registered providers with their models."""
    registry = request.app.state.orchestrator.registry
    return {"providers": [d.model_dump() for d in registry.list_all()]}
