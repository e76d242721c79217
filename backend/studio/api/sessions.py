"""
Wizard session API endpoints.

POST   /api/sessions                      - Start a wizard
GET    /api/sessions/{id}                 - Wizard state
DELETE /api/sessions/{id}                 - Forget a wizard
POST   /api/sessions/{id}/image           - Upload the photo (step 1)
PUT    /api/sessions/{id}/parameters      - Edit dodge & burn parameters
POST   /api/sessions/{id}/suggest         - Ask for suggested intensities
POST   /api/sessions/{id}/retouch         - Apply dodge & burn (step 2)
POST   /api/sessions/{id}/palette         - Extract a reference palette
POST   /api/sessions/{id}/selection       - Toggle a palette color
POST   /api/sessions/{id}/transfer        - Harmonize colors (step 3)
POST   /api/sessions/{id}/reset           - Start over
POST   /api/sessions/{id}/error/dismiss   - Clear the error text

Remote failures are not HTTP errors: the action returns the state with
its `error` field set.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile

from studio.core.errors import ActionInProgress, InvalidTransition, PreviewLimitExceeded
from studio.models import RetouchParameters, SelectionToggleRequest, WizardStateResponse
from studio.sessions import session_store
from studio.wizard import RetouchWizard

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


def get_wizard(session_id: str) -> RetouchWizard:
    wizard = session_store.get(session_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return wizard


@router.post("/sessions", response_model=WizardStateResponse, status_code=201)
async def create_session() -> WizardStateResponse:
    """Start a new wizard in the upload step."""
    wizard = session_store.create()
    return wizard.snapshot()


@router.get("/sessions/{session_id}", response_model=WizardStateResponse)
async def get_session(session_id: str) -> WizardStateResponse:
    return get_wizard(session_id).snapshot()


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str) -> Response:
    if not session_store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return Response(status_code=204)


@router.post("/sessions/{session_id}/image", response_model=WizardStateResponse)
async def upload_image(session_id: str, file: UploadFile = File(...)) -> WizardStateResponse:
    """
    Upload the photo to retouch.

    Accepts JPEG, PNG or WEBP up to the configured size limit.
    Rejected files return 400 and leave the wizard where it was.
    """
    wizard = get_wizard(session_id)
    content = await file.read()

    try:
        accepted = wizard.select_image(content, file.content_type)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PreviewLimitExceeded as e:
        logger.error(f"Preview limit reached: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    if not accepted:
        raise HTTPException(status_code=400, detail=wizard.error)

    return wizard.snapshot()


@router.put("/sessions/{session_id}/parameters", response_model=WizardStateResponse)
async def update_parameters(session_id: str, parameters: RetouchParameters) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    try:
        wizard.update_parameters(parameters)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return wizard.snapshot()


@router.post("/sessions/{session_id}/suggest", response_model=WizardStateResponse)
async def suggest_parameters(session_id: str) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    try:
        await wizard.run_suggest()
    except (InvalidTransition, ActionInProgress) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return wizard.snapshot()


@router.post("/sessions/{session_id}/retouch", response_model=WizardStateResponse)
async def run_retouch(session_id: str) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    try:
        await wizard.run_retouch()
    except (InvalidTransition, ActionInProgress) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return wizard.snapshot()


@router.post("/sessions/{session_id}/palette", response_model=WizardStateResponse)
async def extract_palette(
    session_id: str,
    file: Optional[UploadFile] = File(None),
    count: Optional[int] = Form(None),
) -> WizardStateResponse:
    """
    Extract a palette from a reference image.

    The uploaded file replaces the current reference image; without a
    file the previous reference is reused.
    """
    wizard = get_wizard(session_id)
    content = await file.read() if file is not None else None
    content_type = file.content_type if file is not None else None

    try:
        await wizard.run_extract(count=count, raw_bytes=content, content_type=content_type)
    except (InvalidTransition, ActionInProgress) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PreviewLimitExceeded as e:
        logger.error(f"Preview limit reached: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return wizard.snapshot()


@router.post("/sessions/{session_id}/selection", response_model=WizardStateResponse)
async def toggle_selection(session_id: str, request: SelectionToggleRequest) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    try:
        wizard.toggle_color_selection(request.hex)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return wizard.snapshot()


@router.post("/sessions/{session_id}/transfer", response_model=WizardStateResponse)
async def run_transfer(session_id: str) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    try:
        await wizard.run_transfer()
    except (InvalidTransition, ActionInProgress) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return wizard.snapshot()


@router.post("/sessions/{session_id}/reset", response_model=WizardStateResponse)
async def reset_session(session_id: str) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    wizard.reset()
    return wizard.snapshot()


@router.post("/sessions/{session_id}/error/dismiss", response_model=WizardStateResponse)
async def dismiss_error(session_id: str) -> WizardStateResponse:
    wizard = get_wizard(session_id)
    wizard.dismiss_error()
    return wizard.snapshot()
