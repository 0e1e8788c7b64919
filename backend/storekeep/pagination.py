from __future__ import annotations

from flask import current_app, has_app_context


def paginate(query, *, page: int | None = None, per_page: int | None = None) -> dict:
    """
    Page an ordered query into the list-endpoint envelope.

    page defaults to 1; per_page defaults to DEFAULT_PAGE_SIZE and is
    capped at MAX_PAGE_SIZE.
    """
    default_size, max_size = 20, 100
    if has_app_context():
        default_size = current_app.config.get("DEFAULT_PAGE_SIZE", default_size)
        max_size = current_app.config.get("MAX_PAGE_SIZE", max_size)

    per_page = max(1, min(per_page or default_size, max_size))
    page = max(page or 1, 1)

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [row.to_dict() for row in rows],
        "count": len(rows),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
