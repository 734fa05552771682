"""
Default event catalog.

Inserted at startup when ``events.seed_default_events`` is enabled. Seeding
is insert-if-missing by slug, so edits made through the admin surface are
never overwritten.
"""

import logging
from datetime import datetime, timezone

from vimarsh.models import Event, EventMode
from vimarsh.repositories import EventRepository

logger = logging.getLogger(__name__)

DEFAULT_EVENTS = [
    {
        "slug": "dsa-bootcamp",
        "title": "DSA Bootcamp",
        "description": "Intensive 3-day workshop covering arrays, linked lists, trees, and dynamic programming.",
        "date": datetime(2024, 2, 15, tzinfo=timezone.utc),
        "time": "10:00 AM",
        "mode": EventMode.OFFLINE,
        "location": "Main Auditorium",
        "image": "https://images.unsplash.com/photo-1516321318423-f06f85e504b3?w=400&h=250&fit=crop",
    },
    {
        "slug": "web-dev-hackathon",
        "title": "Web Dev Hackathon",
        "description": "24-hour hackathon to build innovative web applications using modern technologies.",
        "date": datetime(2024, 2, 20, tzinfo=timezone.utc),
        "time": "9:00 AM",
        "mode": EventMode.HYBRID,
        "location": "Tech Lab",
        "image": "https://images.unsplash.com/photo-1504384308090-c894fdcc538d?w=400&h=250&fit=crop",
    },
    {
        "slug": "competitive-programming",
        "title": "Competitive Programming",
        "description": "Weekly CP session focusing on problem-solving techniques and contest strategies.",
        "date": datetime(2024, 2, 25, tzinfo=timezone.utc),
        "time": "5:00 PM",
        "mode": EventMode.ONLINE,
        "location": "Discord",
        "image": "https://images.unsplash.com/photo-1555066931-4365d14bab8c?w=400&h=250&fit=crop",
    },
    {
        "slug": "ai-ml-workshop",
        "title": "AI/ML Workshop",
        "description": "Hands-on workshop covering machine learning fundamentals and neural networks.",
        "date": datetime(2024, 3, 1, tzinfo=timezone.utc),
        "time": "2:00 PM",
        "mode": EventMode.HYBRID,
        "location": "Innovation Center",
        "image": "https://images.unsplash.com/photo-1555949963-ff9fe0c870eb?w=400&h=250&fit=crop",
    },
    {
        "slug": "mobile-app-development",
        "title": "Mobile App Development",
        "description": "Learn to build cross-platform mobile apps using React Native.",
        "date": datetime(2024, 3, 5, tzinfo=timezone.utc),
        "time": "11:00 AM",
        "mode": EventMode.ONLINE,
        "location": "Zoom",
        "image": "https://images.unsplash.com/photo-1512941937609-b56c5baeb8d8?w=400&h=250&fit=crop",
    },
    {
        "slug": "cloud-computing-basics",
        "title": "Cloud Computing Basics",
        "description": "Introduction to cloud services, deployment, and scalability concepts.",
        "date": datetime(2024, 3, 10, tzinfo=timezone.utc),
        "time": "3:00 PM",
        "mode": EventMode.OFFLINE,
        "location": "Computer Lab",
        "image": "https://images.unsplash.com/photo-1451187580459-43490279c0fa?w=400&h=250&fit=crop",
    },
]

DEFAULT_EVENT_SLUGS = [event["slug"] for event in DEFAULT_EVENTS]


async def ensure_default_events(events: EventRepository) -> int:
    """
    Insert any default event whose slug is missing.

    Returns:
        Number of events inserted.
    """
    inserted = 0
    for data in DEFAULT_EVENTS:
        if await events.insert_if_missing(Event(**data, registered_count=0)):
            inserted += 1
    if inserted:
        logger.info(f"Seeded {inserted} default event(s)")
    return inserted
