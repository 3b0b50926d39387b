# privacydesk/auth/dependencies.py - Caller identity from request headers
import re
from typing import Optional

from fastapi import Header
from loguru import logger

from privacydesk.exceptions.errors import InvalidArgumentError

IDENTITY_PATTERN = re.compile(r"^[A-Za-z0-9._:@\-]{1,128}$")


def _require_identity(value: Optional[str], header: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        logger.warning(f"Request without {header} header")
        raise InvalidArgumentError(f"Missing {header} header")
    if len(value) > max_length or not IDENTITY_PATTERN.match(value):
        raise InvalidArgumentError(f"Malformed {header} header")
    return value


async def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> str:
    """
    Tenant every query is scoped to. Authentication happens upstream; this
    service trusts the gateway-provided header.
    """
    return _require_identity(x_tenant_id, "X-Tenant-Id", 64)


async def get_actor_id(x_actor_id: Optional[str] = Header(None)) -> str:
    """Operator performing a mutation, recorded on transitions"""
    return _require_identity(x_actor_id, "X-Actor-Id", 128)
