"""
ID generation: document ids.

Rules:
- ids are assigned by the store on first save, never by the client
- format: 24 lowercase hex chars (8 timestamp + 16 random)
"""

import time
import uuid


def generate_document_id() -> str:
    """
    Generate a document id.

    Sortable by creation second, unique via UUID v4.

    Returns:
        id string
    """
    timestamp = f"{int(time.time()) & 0xFFFFFFFF:08x}"
    unique = uuid.uuid4().hex[:16]

    return f"{timestamp}{unique}"
