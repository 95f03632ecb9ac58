"""
FastAPI Dependencies
Caller identity from gateway headers
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status, Header


@dataclass(frozen=True)
class CallerContext:
    """Identity of the calling user as asserted by the upstream gateway"""
    user_id: UUID
    organization_id: Optional[UUID] = None


async def get_caller(
    x_user_id: Optional[UUID] = Header(None, alias="X-User-Id"),
    x_organization_id: Optional[UUID] = Header(None, alias="X-Organization-Id")
) -> CallerContext:
    """
    Resolve the caller from X-User-Id / X-Organization-Id

    Usage:
        @router.get("/conversations")
        async def list_conversations(caller: CallerContext = Depends(get_caller)):
            ...
    """
    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return CallerContext(user_id=x_user_id, organization_id=x_organization_id)


async def get_org_caller(
    caller: CallerContext = Depends(get_caller)
) -> CallerContext:
    """Caller acting on behalf of an organization"""
    if caller.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Organization-Id header",
        )
    return caller
