from __future__ import annotations

import uuid


def new_id() -> str:
    """Opaque primary key for every table (UUID4 string)."""
    return str(uuid.uuid4())
