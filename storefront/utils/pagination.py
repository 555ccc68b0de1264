# storefront/utils/pagination.py
import math


def page_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def pagination(page: int, limit: int, total: int) -> dict:
    pages = math.ceil(total / limit) if limit else 0
    return {
        "current": page,
        "pages": pages,
        "total": total,
        "has_next": page < pages,
        "has_prev": page > 1,
    }
