from snapvault.database import database
from snapvault.repository import CatalogRepository

def get_repository() -> CatalogRepository:
    return CatalogRepository(database.images)
