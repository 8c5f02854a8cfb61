# api/personalization.py
"""
Personalization API Endpoint

- POST /api/personalization/personalize             build a bundle for a request
- POST /api/personalization/actions/{session_id}    record a UI action
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from loguru import logger

from ..agents.personalization_engine import PersonalizationEngine, get_personalization_engine
from ..schemas.ai_schemas import (
    ActionRecordResponse,
    PersonalizationContext,
    PersonalizationResponse,
    UserAction,
)

router = APIRouter(prefix="/api/personalization", tags=["personalization"])


@router.post("/personalize", response_model=PersonalizationResponse)
async def personalize(
    context: PersonalizationContext,
    engine: PersonalizationEngine = Depends(get_personalization_engine),
    x_user_id: Optional[str] = Header(None)
):
    """
    Personalize the current page for a user.

    Unknown users receive the default bundle.
    """
    if not context.session_id.strip():
        raise HTTPException(status_code=400, detail="session_id is required")
    if x_user_id:
        context = context.model_copy(update={"user_id": x_user_id})

    logger.info(f"Personalize: user={context.user_id}, page={context.current_page}")
    return await engine.personalize(context)


@router.post("/actions/{session_id}", response_model=ActionRecordResponse)
async def record_action(
    session_id: str,
    action: UserAction,
    engine: PersonalizationEngine = Depends(get_personalization_engine),
    x_user_id: Optional[str] = Header(None)
):
    """Buffer a UI action; returns the new bundle when it triggered a recompute"""
    if x_user_id and "user_id" not in action.metadata:
        action = action.model_copy(update={"metadata": {**action.metadata, "user_id": x_user_id}})

    updated = await engine.record_action(session_id, action)
    return ActionRecordResponse(
        session_id=session_id,
        recomputed=updated is not None,
        personalization=updated,
    )
