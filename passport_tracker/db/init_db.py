import asyncio
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from passport_tracker.core.security import get_password_hash
from passport_tracker.core.settings import settings
from passport_tracker.models.user import User
from passport_tracker.schemas.common import Role, UserStatus

logger = logging.getLogger(__name__)


async def init_db(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Seed the initial administrator when SEED_ADMIN_PASSWORD is configured."""
    if not settings.seed_admin_password:
        logger.info("SEED_ADMIN_PASSWORD not set; skipping admin seed")
        return
    async with session_factory() as session:
        stmt = select(User).where(User.username == settings.seed_admin_username)
        result = await session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            logger.info("Admin user already exists")
            return
        session.add(
            User(
                id=uuid.uuid4(),
                username=settings.seed_admin_username,
                email=settings.seed_admin_email,
                hashed_password=get_password_hash(settings.seed_admin_password),
                full_name=settings.seed_admin_full_name,
                role=Role.ADMIN.value,
                status=UserStatus.ACTIVE.value,
            )
        )
        await session.commit()
        logger.info("Admin user %s created", settings.seed_admin_username)


if __name__ == "__main__":
    from passport_tracker.db.session import create_engine, create_session_factory

    async def _main() -> None:
        engine = create_engine()
        try:
            await init_db(create_session_factory(engine))
        finally:
            await engine.dispose()

    asyncio.run(_main())
