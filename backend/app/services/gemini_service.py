"""Google Gemini calls for image-to-prompt and prompt enhancement."""
import logging
import os

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from app.errors import AppError, log_error

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
REQUEST_TIMEOUT_SECONDS = 30

IMAGE_ANALYSIS_INSTRUCTION = (
    "Describe this image in extreme detail for a text-to-image prompt. Focus on subject, "
    "setting, composition, lighting, colors, mood, and artistic style. Use descriptive "
    "keywords and separate them with commas. Start with the main subject. Be specific about "
    "any cultural elements if you recognize them, especially Indonesian culture."
)

ENHANCE_INSTRUCTION = (
    "You are an expert prompt engineer for text-to-image AI models like Midjourney. Your task "
    "is to enhance the following user prompt to make it more vivid, detailed, and visually "
    "stunning, while maintaining and amplifying its core Indonesian theme. Do not change the "
    "main subject. Add details about composition, lighting, artistic style, and specific "
    "Indonesian cultural or natural elements. The final output must only be the enhanced "
    "prompt string, without any preamble or explanation."
)


def _get_model() -> genai.GenerativeModel:
    api_key = os.environ.get("GEMINI_API_KEY")
    if not api_key:
        raise AppError("AI service configuration error", 500)
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(os.environ.get("GEMINI_MODEL", DEFAULT_MODEL))


def _generate(contents, context: str, unavailable_message: str) -> str:
    model = _get_model()
    try:
        response = model.generate_content(
            contents,
            request_options={"timeout": REQUEST_TIMEOUT_SECONDS},
        )
    except google_exceptions.GoogleAPIError as e:
        log_error(e, f"Gemini API error ({context})")
        raise AppError(unavailable_message, 503)

    try:
        text = response.text
    except ValueError:
        # Raised by the SDK when the candidate was blocked or empty
        text = ""
    return (text or "").strip()


def analyze_image(image_bytes: bytes, mime_type: str) -> str:
    """Turn an image into a comma-separated text-to-image prompt."""
    generated = _generate(
        [IMAGE_ANALYSIS_INSTRUCTION, {"mime_type": mime_type, "data": image_bytes}],
        context="analyze image",
        unavailable_message="AI analysis service temporarily unavailable",
    )
    if not generated:
        log_error({"mime_type": mime_type}, "No prompt generated from Gemini")
        raise AppError("Failed to analyze image. Please try again.", 500)
    return generated


def enhance_prompt(prompt: str) -> str:
    """Rewrite a prompt into a richer one with an Indonesian theme."""
    enhanced = _generate(
        f'{ENHANCE_INSTRUCTION}\n\nUser Prompt: "{prompt}"',
        context="enhance prompt",
        unavailable_message="AI enhancement service temporarily unavailable",
    )
    if not enhanced:
        log_error({"prompt_length": len(prompt)}, "Unexpected Gemini Response")
        raise AppError("Failed to enhance prompt. Please try again.", 500)
    return enhanced
