"""
Core Database Client
Async MongoDB connection used by the direct transfer path
"""
import importlib
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from .exceptions import FallbackRequired
from .process import mask_credentials

logger = logging.getLogger(__name__)

ASYNC_DRIVER_MODULE = "motor.motor_asyncio"

# Server error code for "ns not found"
NAMESPACE_NOT_FOUND = 26


def load_async_driver():
    """Import the async driver, signalling a strategy fallback when it is missing"""
    try:
        return importlib.import_module(ASYNC_DRIVER_MODULE)
    except ImportError as e:
        logger.error("❌ MongoDB async driver not found. Install with: pip install motor")
        raise FallbackRequired(f"async driver unavailable: {e}") from e


@dataclass
class DatabaseConfig:
    """Connection settings for one side of the sync"""
    connection_string: str
    database_name: str
    role: str = "source"
    max_pool_size: int = 100
    min_pool_size: int = 0
    server_selection_timeout_ms: int = 10000
    socket_timeout_ms: int = 30000
    connect_timeout_ms: int = 20000


class MongoDatabaseClient:
    """
    Thin wrapper around an AsyncIOMotorClient bound to one database

    Provides:
    - Connection management with a ping check
    - Collection lookup by name
    """

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.client = None
        self.database = None
        self.is_connected = False

    async def connect(self):
        """Connect and ping; raises FallbackRequired if the driver is missing"""
        motor_asyncio = load_async_driver()
        logger.info(f"Connecting to {self.config.role} database "
                    f"{mask_credentials(self.config.connection_string)}...")

        self.client = motor_asyncio.AsyncIOMotorClient(
            self.config.connection_string,
            maxPoolSize=self.config.max_pool_size,
            minPoolSize=self.config.min_pool_size,
            serverSelectionTimeoutMS=self.config.server_selection_timeout_ms,
            socketTimeoutMS=self.config.socket_timeout_ms,
            connectTimeoutMS=self.config.connect_timeout_ms
        )
        await self.client.admin.command('ping')

        self.database = self.client[self.config.database_name]
        self.is_connected = True
        logger.info(f"✅ Connected to {self.config.role} database '{self.config.database_name}'")

    async def disconnect(self):
        if self.client:
            self.client.close()
            self.is_connected = False
            logger.info(f"Disconnected from {self.config.role} database")

    def collection(self, name: str):
        if self.database is None:
            raise RuntimeError(f"{self.config.role} database is not connected")
        return self.database[name]


async def drop_if_exists(collection) -> bool:
    """Drop a collection; returns False if it did not exist"""
    from pymongo.errors import OperationFailure

    try:
        await collection.drop()
        return True
    except OperationFailure as e:
        if e.code == NAMESPACE_NOT_FOUND:
            return False
        raise


async def copy_indexes(source_collection, target_collection) -> Dict[str, int]:
    """Recreate the source's secondary indexes on the target collection"""
    source_indexes: List[Dict[str, Any]] = await source_collection.list_indexes().to_list(length=None)
    created = 0
    failed = 0

    for index_info in source_indexes:
        if index_info['name'] == '_id_':
            continue

        index_options = {
            key: value for key, value in index_info.items()
            if key not in ('v', 'key', 'name', 'ns')
        }
        try:
            await target_collection.create_index(
                list(index_info['key'].items()),
                name=index_info['name'],
                **index_options
            )
            logger.debug(f"   ✅ Created index: {index_info['name']} on {list(index_info['key'].keys())}")
            created += 1
        except Exception as e:
            logger.warning(f"   ⚠️  Failed to create index {index_info['name']}: {e}")
            failed += 1

    return {"created": created, "failed": failed}
