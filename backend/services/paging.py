# backend/services/paging.py
from sqlalchemy.orm import Query

# Offset pagination shared by every listing; page numbers start at 1
def paginate(query: Query, page: int, page_size: int) -> dict:
    page = max(page, 1)
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
