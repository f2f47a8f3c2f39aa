#!/usr/bin/env python3
"""
Database seed script for Garuda AI.

Creates demo profiles, saved prompts and subscriptions for local development.
Run from the backend directory: python -m scripts.seed_db
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

from dateutil.relativedelta import relativedelta

# Add the backend directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import UNLIMITED_CREDITS
from app.database import SessionLocal, engine, Base
from app.gallery_seed import seed_gallery_prompts
from app.models.base import new_id
from app.models.profile import Profile
from app.models.prompt import GalleryPrompt, SavedPrompt
from app.models.subscription import Subscription


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def datetime_ago(days: int = 0, hours: int = 0) -> datetime:
    """Return datetime object for a time in the past."""
    return utc_now() - timedelta(days=days, hours=hours)


DEMO_USERS = [
    {"email": "budi@example.com", "plan": "free", "credits": 7, "joined_days_ago": 20},
    {"email": "sari@example.com", "plan": "pro", "credits": UNLIMITED_CREDITS, "joined_days_ago": 45},
    {"email": "wayan@example.com", "plan": "free", "credits": 0, "joined_days_ago": 3},
]

DEMO_PROMPTS = [
    ("Candi Borobudur saat kabut pagi, biksu berjalan membawa lentera", "image", ["temple", "jawa"]),
    ("Rendang daging di atas daun pisang, cahaya hangat, food photography", "image", ["food"]),
    ("Tulis puisi tentang hujan pertama di Bandung", "text", ["puisi"]),
    ("Komodo di pantai pasir merah muda, golden hour", "image", ["wildlife", "ntt"]),
]


def seed_database():
    """Create demo data in every table."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        created_gallery = seed_gallery_prompts(db)
        print(f"Gallery prompts created: {created_gallery}")

        for index, demo in enumerate(DEMO_USERS):
            user_id = new_id()
            profile = Profile(
                id=user_id,
                email=demo["email"],
                image_analysis_credits=demo["credits"],
                plan_type=demo["plan"],
                created_at=datetime_ago(days=demo["joined_days_ago"]),
            )
            db.add(profile)

            if demo["plan"] != "free":
                start = datetime_ago(days=5)
                subscription = Subscription(
                    id=new_id(),
                    user_id=user_id,
                    plan_id=demo["plan"],
                    status="active",
                    current_period_start=start,
                    current_period_end=start + relativedelta(months=1),
                    provider="midtrans",
                    provider_payment_id=f"demo-transaction-{index}",
                )
                db.add(subscription)
                profile.current_subscription_id = subscription.id

            for offset, (text, prompt_type, tags) in enumerate(DEMO_PROMPTS):
                db.add(SavedPrompt(
                    user_id=user_id,
                    prompt_text=text,
                    type=prompt_type,
                    tags=tags,
                    is_favorite=offset == 0,
                    created_at=datetime_ago(days=offset, hours=index),
                ))

            print(f"Seeded {demo['email']} ({demo['plan']})")

        db.commit()
        print("Database seeded successfully!")
    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def clear_database():
    """Delete all rows from the application tables."""
    db = SessionLocal()
    try:
        db.query(SavedPrompt).delete()
        db.query(Subscription).delete()
        db.query(Profile).delete()
        db.query(GalleryPrompt).delete()
        db.commit()
        print("Database cleared successfully!")
    except Exception as e:
        print(f"Error clearing database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed or clear the Garuda AI database")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear the database before seeding",
    )
    parser.add_argument(
        "--clear-only",
        action="store_true",
        help="Only clear the database, don't seed",
    )

    args = parser.parse_args()

    if args.clear_only:
        clear_database()
    elif args.clear:
        clear_database()
        seed_database()
    else:
        seed_database()
