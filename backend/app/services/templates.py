"""Built-in prompt templates with ``[VARIABLE]`` placeholders."""
from typing import Any

from app.errors import AppError

TEMPLATES: list[dict[str, Any]] = [
    {
        "id": "indo-portrait",
        "title": "Portrait Indonesia Tradisional",
        "description": "Template untuk membuat portrait dengan nuansa budaya Indonesia",
        "category": "photography",
        "prompt": (
            "Portrait of a [GENDER] wearing traditional [REGION] clothing, [AGE] years old, "
            "[EXPRESSION] expression, sitting in [SETTING], golden hour lighting, shot with 85mm "
            "lens, shallow depth of field, warm color grading, cultural authenticity, detailed "
            "fabric textures"
        ),
        "tags": ["portrait", "traditional", "indonesia", "cultural"],
        "difficulty": "beginner",
        "variables": [
            {"name": "GENDER", "options": ["woman", "man", "person"]},
            {"name": "REGION", "options": ["Jawa", "Bali", "Sumatra", "Kalimantan", "Sulawesi"]},
            {"name": "AGE", "options": ["young", "middle-aged", "elderly"]},
            {"name": "EXPRESSION", "options": ["serene", "smiling", "contemplative", "proud"]},
            {"name": "SETTING", "options": [
                "traditional Indonesian garden", "wooden pavilion", "rice field", "temple courtyard",
            ]},
        ],
    },
    {
        "id": "indo-landscape",
        "title": "Pemandangan Nusantara",
        "description": "Template untuk landscape Indonesia yang memukau",
        "category": "landscape",
        "prompt": (
            "[LOCATION] landscape in Indonesia, [TIME_OF_DAY], [WEATHER] weather, lush tropical "
            "vegetation, [WATER_FEATURE], dramatic clouds, vibrant colors, wide angle shot, high "
            "resolution, National Geographic style"
        ),
        "tags": ["landscape", "indonesia", "nature", "tropical"],
        "difficulty": "intermediate",
        "variables": [
            {"name": "LOCATION", "options": [
                "Borobudur temple", "Mount Bromo", "Raja Ampat", "Lake Toba", "Komodo Island",
            ]},
            {"name": "TIME_OF_DAY", "options": ["golden hour", "blue hour", "sunrise", "sunset", "midday"]},
            {"name": "WEATHER", "options": ["clear", "misty", "dramatic stormy", "partly cloudy"]},
            {"name": "WATER_FEATURE", "options": [
                "flowing river", "pristine lake", "ocean waves", "waterfall", "hot springs",
            ]},
        ],
    },
    {
        "id": "indo-food",
        "title": "Kuliner Indonesia",
        "description": "Template untuk food photography makanan Indonesia",
        "category": "product",
        "prompt": (
            "[FOOD_NAME] Indonesian dish, served on [PLATE_TYPE], garnished with [GARNISH], steam "
            "rising, warm lighting, rustic wooden table, banana leaf background, appetizing "
            "presentation, macro photography, food styling"
        ),
        "tags": ["food", "culinary", "indonesia", "photography"],
        "difficulty": "beginner",
        "variables": [
            {"name": "FOOD_NAME", "options": ["Nasi Gudeg", "Rendang", "Gado-gado", "Sate Ayam", "Nasi Padang"]},
            {"name": "PLATE_TYPE", "options": [
                "traditional ceramic plate", "banana leaf", "wooden bowl", "clay pot",
            ]},
            {"name": "GARNISH", "options": [
                "fresh herbs and chili", "fried shallots", "lime wedges", "cucumber slices",
            ]},
        ],
    },
]


def filter_templates(
    category: str | None = None,
    difficulty: str | None = None,
    search: str | None = None,
) -> list[dict[str, Any]]:
    results = TEMPLATES
    if category and category != "all":
        results = [t for t in results if t["category"] == category]
    if difficulty and difficulty != "all":
        results = [t for t in results if t["difficulty"] == difficulty]
    if search:
        needle = search.lower()
        results = [
            t for t in results
            if needle in t["title"].lower()
            or needle in t["description"].lower()
            or any(needle in tag.lower() for tag in t["tags"])
        ]
    return results


def get_template(template_id: str) -> dict[str, Any] | None:
    return next((t for t in TEMPLATES if t["id"] == template_id), None)


def customize_template(template_id: str | None, variables: dict[str, str] | None = None) -> tuple[str, dict[str, Any]]:
    """Fill a template's placeholders.

    Supplied variables are matched case-insensitively; any placeholder left
    over takes the first of its options.

    Returns:
        (customized_prompt, template)
    """
    if not template_id:
        raise AppError("Template ID is required", 400)
    template = get_template(template_id)
    if template is None:
        raise AppError("Template not found", 404)

    prompt = template["prompt"]
    for key, value in (variables or {}).items():
        prompt = prompt.replace(f"[{key.upper()}]", str(value))

    for variable in template["variables"]:
        placeholder = f"[{variable['name']}]"
        if placeholder in prompt:
            prompt = prompt.replace(placeholder, variable["options"][0])

    return prompt, template
