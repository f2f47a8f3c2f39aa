"""Owner-scoped CRUD over saved prompts.

Every query filters on ``user_id``; a prompt that exists but belongs to
someone else is indistinguishable from one that does not exist.
"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.errors import AppError
from app.models.prompt import GalleryPrompt, SavedPrompt

logger = logging.getLogger(__name__)

PROMPT_TYPES = ("image", "text")
MAX_PROMPT_LENGTH = 5000
MAX_PROMPTS_PER_USER = 1000
DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 100


def list_prompts(
    db: Session,
    user_id: str,
    prompt_type: str | None = None,
    search: str | None = None,
    limit: int = DEFAULT_LIST_LIMIT,
) -> list[SavedPrompt]:
    """List a user's prompts, newest first.

    Args:
        prompt_type: "all", "favorites", "image" or "text".
        search: Case-insensitive substring of the prompt text.
        limit: Page size, capped at 100.
    """
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    query = db.query(SavedPrompt).filter(SavedPrompt.user_id == user_id)

    if prompt_type and prompt_type != "all":
        if prompt_type == "favorites":
            query = query.filter(SavedPrompt.is_favorite.is_(True))
        else:
            query = query.filter(SavedPrompt.type == prompt_type)

    if search:
        query = query.filter(SavedPrompt.prompt_text.ilike(f"%{search}%"))

    return query.order_by(SavedPrompt.created_at.desc()).limit(limit).all()


def count_prompts(db: Session, user_id: str) -> int:
    return db.query(func.count(SavedPrompt.id)).filter(SavedPrompt.user_id == user_id).scalar() or 0


def create_prompt(
    db: Session,
    user_id: str,
    prompt_text: str,
    prompt_type: str,
    tags: list[str] | None = None,
) -> SavedPrompt:
    if not prompt_text or not prompt_text.strip() or not prompt_type:
        raise AppError("Prompt text and type are required", 400)
    if prompt_type not in PROMPT_TYPES:
        raise AppError("Invalid prompt type", 400)
    if len(prompt_text) > MAX_PROMPT_LENGTH:
        raise AppError(f"Prompt text too long (max {MAX_PROMPT_LENGTH} characters)", 400)

    if count_prompts(db, user_id) >= MAX_PROMPTS_PER_USER:
        raise AppError(f"Maximum number of saved prompts reached ({MAX_PROMPTS_PER_USER})", 400)

    prompt = SavedPrompt(
        user_id=user_id,
        prompt_text=prompt_text.strip(),
        type=prompt_type,
        tags=list(tags or []),
    )
    db.add(prompt)
    db.commit()
    db.refresh(prompt)
    return prompt


def get_prompt(db: Session, user_id: str, prompt_id: str) -> SavedPrompt | None:
    return db.query(SavedPrompt).filter(
        SavedPrompt.id == prompt_id,
        SavedPrompt.user_id == user_id,
    ).first()


def update_prompt(
    db: Session,
    user_id: str,
    prompt_id: str,
    is_favorite: bool | None = None,
    tags: list[str] | None = None,
) -> SavedPrompt:
    if is_favorite is None and tags is None:
        raise AppError("No valid fields to update", 400)

    prompt = get_prompt(db, user_id, prompt_id)
    if prompt is None:
        raise AppError("Prompt not found or access denied", 404)

    if is_favorite is not None:
        prompt.is_favorite = is_favorite
    if tags is not None:
        prompt.tags = list(tags)
    db.commit()
    db.refresh(prompt)
    return prompt


def delete_prompt(db: Session, user_id: str, prompt_id: str) -> None:
    deleted = db.query(SavedPrompt).filter(
        SavedPrompt.id == prompt_id,
        SavedPrompt.user_id == user_id,
    ).delete(synchronize_session=False)
    db.commit()
    if not deleted:
        raise AppError("Prompt not found or access denied", 404)
    logger.debug("Deleted prompt %s for user %s", prompt_id, user_id)


def list_gallery_prompts(db: Session, limit: int = 12) -> list[GalleryPrompt]:
    return db.query(GalleryPrompt).order_by(GalleryPrompt.created_at.desc()).limit(limit).all()
