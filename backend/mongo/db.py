from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection

from backend import config


# ====== Conexão MongoDB (motor) ======
_mongo_client: Optional[AsyncIOMotorClient] = None
_mongo_db: Optional[AsyncIOMotorDatabase] = None

PRODUCERS_COLLECTION = "producers"


async def connect_to_mongo(uri: str = config.MONGO_URI, db_name: str = config.MONGO_DB_NAME) -> None:
	global _mongo_client, _mongo_db
	if _mongo_client is None:
		_mongo_client = AsyncIOMotorClient(uri)
		_mongo_db = _mongo_client[db_name]
		# cpf_cnpj é único entre produtores
		await _mongo_db[PRODUCERS_COLLECTION].create_index("cpf_cnpj", unique=True)

async def close_mongo_connection() -> None:
	global _mongo_client, _mongo_db
	if _mongo_client is not None:
		_mongo_client.close()
		_mongo_client = None
		_mongo_db = None

def get_db() -> AsyncIOMotorDatabase:
	if _mongo_db is None:
		raise RuntimeError("MongoDB nao inicializado. Chame connect_to_mongo no startup da API.")
	return _mongo_db

def get_collection(name: str = PRODUCERS_COLLECTION) -> AsyncIOMotorCollection:
	return get_db()[name]
