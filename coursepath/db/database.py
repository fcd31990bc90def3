from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from coursepath.config import DATABASE_URL, DB_ECHO

engine = create_async_engine(DATABASE_URL, echo=DB_ECHO, future=True)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


# Зависимость для получения сессии
async def get_async_session():
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    from coursepath.db import models

    async with engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)


if __name__ == "__main__":
    import asyncio
    asyncio.run(create_tables())
    print("Все таблицы успешно созданы!")
