import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from models import Base
from supabase import create_client, Client

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
DATABASE_URL = os.getenv("DATABASE_URL")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = "HS256"

INTERNAL_SECRET = os.getenv("INTERNAL_SECRET")
DEFAULT_TRUST_SCORE = float(os.getenv("DEFAULT_TRUST_SCORE", "5.0"))
ENFORCE_ORDER_TRANSITIONS = os.getenv("ENFORCE_ORDER_TRANSITIONS", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


_supabase_client = None

def get_supabase_client() -> Client:
    global _supabase_client
    if _supabase_client is None:
        if not SUPABASE_URL or not SUPABASE_ANON_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY must be set in environment variables")

        _supabase_client = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)

    return _supabase_client


def build_async_url(database_url: str) -> str:
    """Point postgres URLs at asyncpg with the statement cache off; leave other drivers alone"""
    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://", "postgres://")):
        return database_url

    asyncpg_url = database_url.replace("postgres://", "postgresql://", 1)
    asyncpg_url = asyncpg_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    if "?" in asyncpg_url:
        base_url = asyncpg_url.split("?")[0]
    else:
        base_url = asyncpg_url

    return f"{base_url}?prepared_statement_cache_size=0"


def build_sync_url(database_url: str) -> str:
    return database_url.replace("postgresql+asyncpg://", "postgresql://").replace("sqlite+aiosqlite://", "sqlite://")


if DATABASE_URL:
    sync_engine = create_engine(build_sync_url(DATABASE_URL))

    async_url = build_async_url(DATABASE_URL)

    if async_url.startswith("postgresql+asyncpg://"):
        async_engine = create_async_engine(
            async_url,
            echo=False,
            pool_pre_ping=False,
            pool_size=5,
            max_overflow=0
        )
    else:
        async_engine = create_async_engine(async_url, echo=False)

    AsyncSessionLocal = sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
else:
    sync_engine = None
    async_engine = None
    AsyncSessionLocal = None

async def get_db():
    if AsyncSessionLocal is None:
        raise Exception("Database not configured")
    async with AsyncSessionLocal() as session:
        yield session

def get_sync_engine():
    if sync_engine is None:
        raise Exception("Database not configured")
    return sync_engine

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
