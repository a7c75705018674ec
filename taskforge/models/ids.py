import uuid


def new_id(prefix: str) -> str:
    """Return a fresh entity id such as ``task_3f2a9c01b7de``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"
