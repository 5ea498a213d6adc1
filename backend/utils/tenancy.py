from typing import Dict, Any
from fastapi import Depends
from exceptions import Unauthorized
from utils.auth_utils import get_current_user, get_user_identifier


def get_owner_scope(user: Dict[str, Any] = Depends(get_current_user)) -> str:
    """
    The caller's owner scope (its user id).

    Records with a NULL owner are shared by every scope; a caller without a
    resolvable id is rejected rather than treated as global.
    """
    user_id = get_user_identifier(user)
    if not user_id:
        raise Unauthorized("Invalid token: missing user id")
    return user_id
