"""Query helpers shared by the allocation repositories."""

import os

from protean.utils.reflection import id_field

# Page size for repository scans; every scan reads all pages
QUERY_LIMIT = int(os.getenv("ALLOCATION_QUERY_LIMIT", "1000"))


def fetch_all(dao, **filters):
    """Return every record matching ``filters`` as a list, one page at a time."""
    query = dao.query.filter(**filters) if filters else dao.query
    query = query.order_by(id_field(dao.entity_cls).field_name)

    records = []
    offset = 0
    while True:
        page = query.offset(offset).limit(QUERY_LIMIT).all()
        records.extend(page.items)
        if not page.has_next or not page.items:
            return records
        offset += QUERY_LIMIT
