"""
Preview API endpoint.

GET /api/previews/{handle} - Bytes of an uploaded image while its handle is live.
"""

from fastapi import APIRouter, HTTPException, Response

from studio.core.previews import preview_registry

router = APIRouter(tags=["previews"])


@router.get("/previews/{handle}")
async def get_preview(handle: str) -> Response:
    entry = preview_registry.get(handle)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Preview not found: {handle}")
    return Response(content=entry.data, media_type=entry.mime_type)
