from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.schemas.prompt import PromptCreate, PromptResponse, PromptUpdate
from app.services import prompt_store
from app.services.supabase_auth import AuthUser

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


@router.get("")
def list_prompts(
    type: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    limit: int = Query(prompt_store.DEFAULT_LIST_LIMIT),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    prompts = prompt_store.list_prompts(db, current_user.id, type, search, limit)
    return {"prompts": [PromptResponse.model_validate(p) for p in prompts]}


@router.post("")
def save_prompt(
    request: PromptCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    prompt = prompt_store.create_prompt(
        db, current_user.id, request.prompt_text, request.type, request.tags
    )
    return {"prompt": PromptResponse.model_validate(prompt)}


@router.put("/{prompt_id}")
def update_prompt(
    prompt_id: str,
    request: PromptUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    prompt = prompt_store.update_prompt(
        db, current_user.id, prompt_id, is_favorite=request.is_favorite, tags=request.tags
    )
    return {"prompt": PromptResponse.model_validate(prompt)}


@router.delete("/{prompt_id}")
def delete_prompt(
    prompt_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    prompt_store.delete_prompt(db, current_user.id, prompt_id)
    return {"success": True}
