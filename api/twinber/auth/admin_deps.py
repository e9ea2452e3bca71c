from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, HTTPException

from twinber import config
from twinber.auth.deps import get_current_user

logger = logging.getLogger(__name__)


def is_admin_email(email: str | None) -> bool:
    if not email:
        return False
    # read at call time so tests and reloads can swap the allow-list
    allow_list = getattr(config, "ADMIN_EMAILS", []) or []
    return email.strip().lower() in {str(e).strip().lower() for e in allow_list}


def get_current_admin(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    if current_user.get("is_anonymous") or not is_admin_email(current_user.get("email")):
        logger.warning(f"[admin] access denied user_id={current_user.get('id')}")
        raise HTTPException(status_code=403, detail="Access denied: not an administrator")
    return current_user
