"""
Ranking scores for posts
"""
import math
from datetime import datetime
from typing import Iterable, List, Optional

from .models import Post, as_utc, utcnow

HOT_DECAY_HOURS = 12


def hot_score(votes: int, created_at: datetime, now: Optional[datetime] = None) -> float:
    """
    Hot score of a post: vote magnitude (log10) signed by the vote direction,
    minus one point for every 12 hours of age.

    Only meaningful for relative ordering inside one evaluation window.
    """
    now = as_utc(now or utcnow())
    age_hours = max((now - as_utc(created_at)).total_seconds() / 3600, 0.0)

    magnitude = math.log10(max(abs(votes), 1))
    if votes > 0:
        sign = 1
    elif votes < 0:
        sign = -1
    else:
        sign = 0

    return magnitude * sign - age_hours / HOT_DECAY_HOURS


def rank_by_hot(posts: Iterable[Post], now: Optional[datetime] = None) -> List[Post]:
    """Order posts by a freshly computed hot score, best first"""
    now = now or utcnow()
    return sorted(
        posts,
        key=lambda p: hot_score(p.vote_count, p.created_at, now),
        reverse=True,
    )
