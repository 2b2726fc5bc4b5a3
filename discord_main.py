import logging

import discord

import config
from application.services import AuthService
from application.session_store import SessionStore
from domain.repositories import PlayerDirectory
from infrastructure.db.player_directory_postgres import PostgresPlayerDirectory
from infrastructure.db.player_directory_sqlite import SqlitePlayerDirectory
from infrastructure.storage.file_storage import FileKeyValueStorage
from interfaces.discord.handlers import create_discord_bot, session_path_for


def build_directory() -> PlayerDirectory:
    if config.DIRECTORY_BACKEND == "postgres":
        if not config.DATABASE_URL:
            raise RuntimeError("DATABASE_URL environment variable is not set.")
        return PostgresPlayerDirectory(
            {"dsn": config.DATABASE_URL},
            timeout=config.DIRECTORY_TIMEOUT_SEC,
        )
    if config.DIRECTORY_BACKEND == "sqlite":
        return SqlitePlayerDirectory(config.DB_PATH, timeout=config.DIRECTORY_TIMEOUT_SEC)
    raise RuntimeError(f"Unknown DIRECTORY_BACKEND {config.DIRECTORY_BACKEND!r}.")


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if not config.DISCORD_TOKEN:
        raise RuntimeError("DISCORD_TOKEN environment variable is not set.")

    directory = build_directory()

    def auth_for(user: discord.abc.User) -> AuthService:
        storage = FileKeyValueStorage(session_path_for(config.SESSION_DIR, user))
        return AuthService(directory, SessionStore(storage))

    bot = create_discord_bot(auth_for)
    bot.run(config.DISCORD_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
