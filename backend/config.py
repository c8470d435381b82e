import os


# ====== MongoDB ======
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "producers_db")

# ====== Redis / fila de cadastro ======
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
PRODUCERS_QUEUE = os.getenv("PRODUCERS_QUEUE", "producers_queue")
PRODUCERS_DLQ = os.getenv("PRODUCERS_DLQ", "producers_dlq")

# ====== API ======
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3000"))
BASIC_AUTH_CREDENTIALS_FILE = os.getenv("BASIC_AUTH_CREDENTIALS_FILE", "backend/credentials/basic_auth.txt")
