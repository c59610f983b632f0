"""Rate limiter shared by the routes (login attempts in particular)."""
import os
import uuid
from slowapi import Limiter
from slowapi.util import get_remote_address


def get_key_func():
    """Client address in production; a fresh key per request under TESTING=1 so tests never hit limits."""
    if os.environ.get("TESTING") == "1":
        return lambda request: str(uuid.uuid4())
    return get_remote_address


limiter = Limiter(key_func=get_key_func())
