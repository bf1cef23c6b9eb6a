import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# -------------------- DATABASE --------------------
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DB_NAME", "bankingDB")
ACCOUNTS_COLLECTION = os.getenv("ACCOUNTS_COLLECTION", "accounts")
ACCOUNT_STORE = os.getenv("ACCOUNT_STORE", "mongo")
SEED_SAMPLE_ACCOUNTS = _flag("SEED_SAMPLE_ACCOUNTS", "true")

# Conditional debit instead of read-then-write; off reproduces the legacy behaviour
GUARDED_DEBIT = _flag("GUARDED_DEBIT", "false")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# -------------------- CACHE --------------------
REDIS_HOST = os.getenv("REDIS_HOST", "")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
CACHE_TTL = int(os.getenv("CACHE_TTL", 300))

# -------------------- RABBITMQ --------------------
RABBIT_HOST = os.getenv("RABBITMQ_HOST", "")
RABBIT_USER = os.getenv("RABBITMQ_USER", "guest")
RABBIT_PASS = os.getenv("RABBITMQ_PASS", "guest")

# -------------------- RATE LIMITS --------------------
RATE_LIMIT_ENABLED = _flag("RATE_LIMIT_ENABLED", "true")
RATE_LIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "100/minute")
TRANSFER_RATE_LIMIT = os.getenv("TRANSFER_RATE_LIMIT", "30/minute")

DEFAULT_CURRENCY = "USD"
