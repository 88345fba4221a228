"""
Sample experts.

A one-time fixture for fresh installs and demos, not runtime logic: the
experts list is always read from storage. Seeding is idempotent, so it
is safe to run on every startup when SEED_EXPERTS is enabled.
"""

from typing import List
import logging
import secrets

from fityog.core.exceptions import ConflictError
from fityog.core.security import get_password_hash
from fityog.schemas import User, UserCreate
from fityog.services.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_PHOTO_URL = "https://images.unsplash.com/photo-1594381898411-846e7d193883"

SAMPLE_EXPERTS = [
    {
        "username": "Sarah Chen",
        "bio": (
            "Certified yoga instructor with 8 years of Hatha and Vinyasa teaching. "
            "Helps beginners build proper form and breathing technique."
        ),
        "specialties": ["Hatha Yoga", "Vinyasa Flow", "Meditation", "Breathwork"],
        "rating": 4.9,
        "experience": "8+ years teaching",
    },
    {
        "username": "Mike Rodriguez",
        "bio": (
            "Former professional athlete turned fitness coach, focused on strength "
            "training and HIIT."
        ),
        "specialties": ["Strength Training", "HIIT", "Sports Conditioning", "Nutrition"],
        "rating": 4.8,
        "experience": "10+ years coaching",
    },
    {
        "username": "Priya Patel",
        "bio": (
            "Ashtanga practitioner and mindfulness coach combining traditional yoga "
            "with modern wellness techniques."
        ),
        "specialties": ["Ashtanga Yoga", "Mindfulness", "Wellness Coaching", "Power Yoga"],
        "rating": 4.7,
        "experience": "6+ years teaching",
    },
]


def seed_experts(storage: Storage) -> List[User]:
    """
    Insert any sample expert that is not in storage yet.

    Returns the experts created by this call. Seeded accounts get a random
    password nobody knows, so they cannot be logged into.
    """
    created = []
    for profile in SAMPLE_EXPERTS:
        if storage.get_user_by_username(profile["username"]) is not None:
            continue
        try:
            user = storage.create_user(
                UserCreate(
                    password=get_password_hash(secrets.token_urlsafe(32)),
                    is_expert=True,
                    photo_url=DEFAULT_PHOTO_URL,
                    **profile,
                )
            )
        except ConflictError:
            # Another worker seeded it first
            continue
        created.append(user)

    if created:
        logger.info(f"Seeded {len(created)} sample experts")
    return created
