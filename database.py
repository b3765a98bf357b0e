from sqlalchemy import create_engine, event
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker, Session
from pydantic_settings import BaseSettings
from functools import lru_cache, wraps
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./featured_rotation.db"

    # 日界線：固定 UTC 偏移（預設 IST = UTC+5:30）
    utc_offset_minutes: int = 330

    # 每次 store 往返的上限（SQLite busy timeout / 其他後端的 connect + pool timeout）
    store_timeout_seconds: int = 10

    scheduler_enabled: bool = True
    fallback_rotation_minutes: int = 60
    presence_sweep_minutes: int = 15
    presence_threshold_seconds: int = 600

    admin_username: str = "admin"
    admin_password: str = "change-me"

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()


def _connect_args(database_url: str, timeout: int) -> dict:
    # SQLite 需要 check_same_thread=False（scheduler 與 request 在不同 thread）
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": timeout}
    return {"connect_timeout": timeout}


def _engine_kwargs(database_url: str, timeout: int) -> dict:
    kwargs = {
        "connect_args": _connect_args(database_url, timeout),
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        kwargs["pool_timeout"] = timeout
    return kwargs


def configure_sqlite_locking(sqlite_engine) -> None:
    """
    讓 SQLite 的每個 transaction 一開始就取得寫入鎖（BEGIN IMMEDIATE）

    pysqlite 預設不會在 SELECT 前送出 BEGIN，讀取時不持有任何鎖，
    FOR UPDATE 在 SQLite 上又會被忽略；兩個輪替可能同時通過過期檢查。
    改成由 SQLAlchemy 自己送 BEGIN IMMEDIATE 之後，第二個輪替會在
    transaction 開頭等待（上限 = busy timeout），拿到鎖時第一個已經 commit。
    """
    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(
    settings.database_url,
    **_engine_kwargs(settings.database_url, settings.store_timeout_seconds)
)
if settings.database_url.startswith("sqlite"):
    configure_sqlite_locking(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """
    FastAPI dependency：提供 Database Session

    使用 yield 確保 session 在請求結束後會被關閉
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def transactional(func):
    """
    Transaction decorator：確保資料庫操作的原子性

    使用方式：
        @transactional
        def some_business_logic(db: Session, ...):
            # 所有 DB 操作都在一個 transaction 內
            slot = with_display_lock(db).first()
            slot.expires_at = ...
            # 不需要手動 commit，decorator 會處理

    如果函式內發生異常：
        - 自動 rollback
        - 異常會被重新拋出（讓上層處理）

    注意：
        - 第一個參數必須是 db: Session
        - 不要在函式內手動 commit（decorator 會處理）
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        # 找出 db session（可能在 args 或 kwargs）
        db = None
        if args and isinstance(args[0], Session):
            db = args[0]
        elif 'db' in kwargs:
            db = kwargs['db']

        if db is None:
            raise ValueError(
                f"@transactional requires 'db: Session' as first argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
