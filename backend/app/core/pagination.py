import math


def total_pages(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
