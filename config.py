import os

from dotenv import load_dotenv


load_dotenv()

DISCORD_TOKEN = os.environ.get("DISCORD_TOKEN")

# "sqlite" or "postgres"
DIRECTORY_BACKEND = os.environ.get("DIRECTORY_BACKEND", "sqlite").lower()
DB_PATH = os.environ.get("DB_PATH", "players.db")
DATABASE_URL = os.environ.get("DATABASE_URL", "")
DIRECTORY_TIMEOUT_SEC = float(os.environ.get("DIRECTORY_TIMEOUT_SEC", "5"))

# One session file per chat user lives here.
SESSION_DIR = os.environ.get("SESSION_DIR", "sessions")

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
