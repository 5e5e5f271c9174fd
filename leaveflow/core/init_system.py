import logging
from leaveflow.core.config import settings
from leaveflow.database import SessionLocal
from leaveflow.services.directory import DirectoryService
from leaveflow.services.store import SqlStore

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Checks if the system needs initialization.
    If the user directory is empty, seeds the demo users.
    """
    if not settings.seed_demo_users:
        logger.info("Demo user seeding disabled (SEED_DEMO_USERS=false)")
        return

    db = SessionLocal()
    try:
        seeded = DirectoryService(SqlStore(db)).seed_demo_users()
        if seeded:
            logger.info("✓ Demo users seeded")
        else:
            logger.info("System initialization check: users already present.")
    except Exception as e:
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
