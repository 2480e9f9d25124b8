import math
import re
from datetime import date, datetime

from backend.core import config

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def parse_iso_date(value: str) -> date | None:
    """Parse a strict ``YYYY-MM-DD`` date, returning None when malformed."""
    try:
        parsed = datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return None
    if parsed.isoformat() != value:
        return None
    return parsed


def normalize_page(page: int | None) -> int:
    return max(1, page or 1)


def normalize_limit(limit: int | None) -> int:
    if limit is None:
        return config.DEFAULT_PAGE_SIZE
    return min(config.MAX_PAGE_SIZE, max(config.MIN_PAGE_SIZE, limit))


def build_pagination(page: int, limit: int, total: int) -> dict:
    return {
        'current_page': page,
        'per_page': limit,
        'total': total,
        'total_pages': math.ceil(total / limit),
    }
