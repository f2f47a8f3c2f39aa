from typing import Optional

from fastapi import APIRouter, Query

from app.schemas.prompt import TemplateCustomizeRequest
from app.services.templates import customize_template, filter_templates

router = APIRouter(prefix="/api", tags=["templates"])


@router.get("/templates")
def list_templates(
    category: Optional[str] = Query(None),
    difficulty: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
):
    return {"templates": filter_templates(category, difficulty, search)}


@router.post("/templates")
def apply_template(request: TemplateCustomizeRequest):
    customized, template = customize_template(request.templateId, request.variables)
    return {
        "customizedPrompt": customized,
        "template": {
            "id": template["id"],
            "title": template["title"],
            "category": template["category"],
        },
    }
