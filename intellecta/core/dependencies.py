from motor.motor_asyncio import AsyncIOMotorDatabase


def get_db_instance():
    """Get database from main module"""
    from intellecta.main import db
    return db

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()
