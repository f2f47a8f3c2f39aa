"""Generative endpoints: image-to-prompt, prompt enhancement and suggestions."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.errors import AppError
from app.schemas.prompt import EnhancePromptRequest, GalleryPromptResponse
from app.services import gemini_service
from app.services.profile_service import get_or_create_profile, spend_image_credit
from app.services.prompt_enhancer import IndonesianPromptEnhancer
from app.services.prompt_store import list_gallery_prompts
from app.services.supabase_auth import AuthUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
ALLOWED_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_ENHANCE_LENGTH = 2000


@router.post("/analyze-image")
def analyze_image(
    image: Optional[UploadFile] = File(None),
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Describe an uploaded image as a text-to-image prompt, spending one credit."""
    profile = get_or_create_profile(db, current_user)
    if profile.image_analysis_credits <= 0:
        raise AppError("Insufficient credits. Please upgrade to continue.", 402)

    if image is None:
        raise AppError("Image file is required", 400)
    if image.content_type not in ALLOWED_TYPES:
        raise AppError("Invalid file type. Please upload JPEG, PNG, or WebP images.", 400)

    data = image.file.read(MAX_FILE_SIZE + 1)
    if len(data) > MAX_FILE_SIZE:
        raise AppError("File too large. Maximum size is 10MB.", 400)
    if not data:
        raise AppError("Image file is required", 400)

    generated_prompt = gemini_service.analyze_image(data, image.content_type)

    remaining = spend_image_credit(db, current_user.id)
    if remaining is None:
        raise AppError("Insufficient credits. Please upgrade to continue.", 402)

    logger.info("Image analyzed for user %s, %d credits left", current_user.id, remaining)
    return {"generatedPrompt": generated_prompt, "creditsRemaining": remaining}


@router.post("/enhance-prompt")
def enhance_prompt(request: EnhancePromptRequest):
    if not request.prompt.strip():
        raise AppError("Valid prompt text is required", 400)
    if len(request.prompt) > MAX_ENHANCE_LENGTH:
        raise AppError(f"Prompt too long. Maximum {MAX_ENHANCE_LENGTH} characters.", 400)

    if request.mode == "local":
        enhanced = IndonesianPromptEnhancer.enhance(request.prompt.strip())
    else:
        enhanced = gemini_service.enhance_prompt(request.prompt)
    return {"enhancedPrompt": enhanced}


@router.get("/enhance-prompt/get-suggestions")
def get_suggestions(db: Session = Depends(get_db)):
    suggestions = list_gallery_prompts(db, limit=12)
    return {"suggestions": [GalleryPromptResponse.model_validate(s) for s in suggestions]}
