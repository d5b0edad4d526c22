"""
Client Info Dependency

Caller IP address and user agent, recorded on parent consents and
audit log entries.
"""

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Request


@dataclass(frozen=True)
class ClientInfo:
    ip_address: Optional[str]
    user_agent: Optional[str]


async def get_client_info(request: Request) -> ClientInfo:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None
    return ClientInfo(ip_address=ip_address, user_agent=request.headers.get("user-agent"))


ClientInfoDep = Annotated[ClientInfo, Depends(get_client_info)]
