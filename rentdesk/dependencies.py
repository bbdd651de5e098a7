from typing import Annotated, Optional

from fastapi import Header


async def get_actor(x_user: Annotated[Optional[str], Header()] = None) -> str:
    """Name recorded as ``created_by`` / activity actor.

    Sign-in is handled in front of this service; it forwards the user name in
    the ``X-User`` header.
    """
    return x_user.strip() if x_user and x_user.strip() else "system"
