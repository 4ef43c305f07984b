import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./classroom_layout.db")

SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("SERVER_PORT", "2022"))

# comma separated, "*" allows every origin
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# browsers refuse credentialed requests against a wildcard origin
CORS_ALLOW_CREDENTIALS = "*" not in CORS_ORIGINS

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
