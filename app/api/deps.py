import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from app.core.context import set_actor_id, set_tenant_id
from app.core.security import decode_token
from app.services.authz import Actor, build_actor

logger = logging.getLogger(__name__)

# Tokens are issued elsewhere; missing credentials yield no actor rather than a 401 here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def actor_from_claims(payload: dict) -> Optional[Actor]:
    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        return None
    manage = payload.get("manage") or []
    if not isinstance(manage, list):
        manage = []
    try:
        return build_actor(str(subject), str(role), payload.get("bank"), manage)
    except ValueError:
        logger.warning("Rejected token with malformed bank claim")
        return None


async def get_current_actor(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[Actor]:
    if not token:
        return None
    try:
        payload = decode_token(token)
    except ValueError:
        return None
    actor = actor_from_claims(payload)
    if actor is not None:
        set_actor_id(actor.id)
        set_tenant_id(actor.tenant_id)
    return actor
