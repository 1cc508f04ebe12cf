from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from .config import settings
from .base import Base

engine = create_async_engine(settings.POSTGRES_DSN, pool_pre_ping=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

async def get_session():
    async with SessionLocal() as session:
        yield session

def import_models():
    # every module's models must be registered on Base.metadata before create_all
    from app.modules.admin import models as _admin  # noqa: F401
    from app.modules.activity import models as _activity  # noqa: F401
    from app.modules.work_items import models as _work_items  # noqa: F401
    from app.modules.strategy import models as _strategy  # noqa: F401
    from app.modules.knowledge_base import models as _kb  # noqa: F401
    from app.modules.email_templates import models as _email  # noqa: F401
    from app.modules.bookings import models as _bookings  # noqa: F401
    from app.modules.integrations import models as _integrations  # noqa: F401
    from app.modules.data_explorer import models as _data_explorer  # noqa: F401
    from app.modules.events import outbox as _outbox  # noqa: F401

async def init_models():
    # In dev-only "create_all" mode create tables; otherwise migrations own the schema.
    if settings.DB_MANAGE.lower() == "create_all":
        import_models()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
