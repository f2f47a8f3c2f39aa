"""Seed data for the public suggestion gallery (``prompts`` table)."""
from sqlalchemy.orm import Session

from app.models.prompt import GalleryPrompt


DEFAULT_GALLERY_PROMPTS = [
    {
        "prompt_text": (
            "Penari Bali mengenakan kostum Legong emas, pura batu berlumut di latar belakang, "
            "cahaya emas fajar, detail tajam, sudut sinematik"
        ),
        "type": "image",
    },
    {
        "prompt_text": (
            "Sunrise over Mount Bromo, sea of mist, volcanic crater, Javanese farmers on horseback, "
            "golden hour, wide angle, National Geographic style"
        ),
        "type": "image",
    },
    {
        "prompt_text": (
            "Pasar terapung Banjarmasin, perahu kayu penuh buah tropis, suasana pagi yang ramai, "
            "kualitas fotorealistis"
        ),
        "type": "image",
    },
    {
        "prompt_text": (
            "Batik parang pattern reimagined as a futuristic neon cityscape of Jakarta, "
            "cyberpunk, rain reflections, hyper-detailed"
        ),
        "type": "image",
    },
    {
        "prompt_text": (
            "Tulis cerita pendek tentang nelayan muda di Raja Ampat yang menemukan peta kuno "
            "di dalam botol"
        ),
        "type": "text",
    },
    {
        "prompt_text": (
            "Buat deskripsi produk untuk kopi Gayo Aceh dengan gaya bahasa hangat dan "
            "menonjolkan cita rasa lokal"
        ),
        "type": "text",
    },
]


def seed_gallery_prompts(db: Session) -> int:
    """Insert default gallery prompts that are not present yet.

    Returns:
        Number of prompts created.
    """
    existing = {row[0] for row in db.query(GalleryPrompt.prompt_text).all()}
    created = 0
    for item in DEFAULT_GALLERY_PROMPTS:
        if item["prompt_text"] in existing:
            continue
        db.add(GalleryPrompt(**item))
        created += 1
    db.commit()
    return created
