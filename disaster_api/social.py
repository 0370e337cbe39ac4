"""Mock social-media feed served per disaster until a real source is wired in."""

import logging
from typing import List

from .models import SocialMediaPost

logger = logging.getLogger(__name__)

MOCK_POSTS = [
    {"post": "#floodrelief Need food in NYC", "user": "citizen1"},
    {"post": "#earthquake trapped in basement", "user": "citizen2"},
]


def mock_feed(disaster_id: str) -> List[SocialMediaPost]:
    posts = [SocialMediaPost(**p) for p in MOCK_POSTS]
    logger.info(f"Serving {len(posts)} mock posts for disaster {disaster_id}")
    return posts
