"""
Client registry: resolves the client a booking is made for.

Runs inside the caller's transaction, so a walk-in client created for a
booking that later fails is rolled back together with it.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import ClientResolutionFailed
from hotel_booking.core.logging import get_logger
from hotel_booking.models.user import Role, User
from hotel_booking.schemas.reservation import NewClientDetails

logger = get_logger(__name__)


async def resolve_client(
    db: AsyncSession,
    client_id: Optional[int],
    new_client: Optional[NewClientDetails],
) -> User:
    if client_id is not None:
        client = await db.get(User, client_id)
        if client is None or client.role != Role.CLIENT or not client.is_active:
            raise ClientResolutionFailed(f"Existing client with ID {client_id} not found or is not a client.")
        return client

    if new_client is None:
        raise ClientResolutionFailed()

    result = await db.execute(select(User).where(User.email == new_client.email))
    if result.scalar_one_or_none():
        raise ClientResolutionFailed(f"A user with email {new_client.email} already exists.")

    client = User(
        email=new_client.email,
        name=new_client.name,
        phone=new_client.phone,
        role=Role.CLIENT,
    )
    db.add(client)
    await db.flush()

    logger.info("walk_in_client_registered", client_id=client.id, email=client.email)
    return client
