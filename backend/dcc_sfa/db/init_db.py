"""
Database bootstrap: create missing tables on startup
"""
import logging

from dcc_sfa.db.base import Base
from dcc_sfa.db.session import engine
import dcc_sfa.models  # noqa: F401  registers every table on Base.metadata

logger = logging.getLogger(__name__)


async def ensure_tables_exist(bind=None):
    """Create any table that does not exist yet"""
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"📊 {len(Base.metadata.tables)} tables ready")
