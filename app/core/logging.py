import logging
import uuid
from contextvars import ContextVar
from .config import settings

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

# chatty libraries that drown request logs at DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")

def new_request_id() -> str:
    return uuid.uuid4().hex[:16]

def resolve_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return logging.DEBUG if settings.ENV == "local" else logging.INFO

def setup_logging():
    # attach request_id to every log record, once per process
    old_factory = logging.getLogRecordFactory()
    if not getattr(old_factory, "_with_request_id", False):
        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.request_id = request_id_ctx.get()
            return record
        record_factory._with_request_id = True
        logging.setLogRecordFactory(record_factory)

    logging.basicConfig(
        level=resolve_level(),
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
