from __future__ import annotations

import uuid


def new_id() -> str:
    """UUID4 string ids are generated in Python so both storage backends mint them the same way."""
    return str(uuid.uuid4())
