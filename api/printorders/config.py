import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./printorders.db")
MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "minio:9000")
MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "minioadmin")
MINIO_BUCKET = os.getenv("MINIO_BUCKET", "print-orders")
MINIO_SECURE = os.getenv("MINIO_SECURE", "false").lower() in ("1", "true", "yes")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
SECRET_KEY = os.getenv("SECRET_KEY", "devsecret")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "crowdit")
ORDER_FALLBACK_EMAIL = os.getenv("ORDER_FALLBACK_EMAIL")
IP_ALLOWLIST_ENABLED = os.getenv("IP_ALLOWLIST_ENABLED", "false").lower() in ("1", "true", "yes")
IP_ALLOWLIST_FAIL_OPEN = os.getenv("IP_ALLOWLIST_FAIL_OPEN", "false").lower() in ("1", "true", "yes")
LISTING_CACHE_TTL = float(os.getenv("LISTING_CACHE_TTL", "30"))
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
WORKER_QUEUE = os.getenv("WORKER_QUEUE", "orders")
DELIVERY_RETRY_INTERVAL = float(os.getenv("DELIVERY_RETRY_INTERVAL", "300"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
