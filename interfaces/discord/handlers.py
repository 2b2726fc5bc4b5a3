from __future__ import annotations

import logging
import os
from typing import Callable

import discord
from discord.ext import commands

from application.services import AuthService
from domain.errors import AuthError

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "!signup <username> <password> [nickname] - create an account\n"
    "!signin <username> <password>            - sign in\n"
    "!signout                                 - sign out\n"
    "!whoami                                  - show who is signed in\n"
    "!nickname <new nickname>                 - change your nickname\n"
    "!profile                                 - show your stats\n"
)


def session_path_for(session_dir: str, user: discord.abc.User) -> str:
    """Each Discord user gets their own session file, like one browser each."""

    return os.path.join(session_dir, f"{user.id}.json")


def create_discord_bot(auth_for: Callable[[discord.abc.User], AuthService]) -> commands.Bot:
    """
    Configure and return a Discord bot exposing sign-up/sign-in/sign-out.

    `auth_for` maps the message author to an `AuthService` bound to that
    author's own session slot. This module only deals with Discord
    concerns: parsing commands and turning results/errors into replies.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    async def _delete_credentials(ctx: commands.Context) -> None:
        # Messages carrying a password should not stay in a guild channel.
        if ctx.guild is None:
            return
        try:
            await ctx.message.delete()
        except discord.HTTPException:
            logger.warning("Could not delete credential message in channel %s", ctx.channel.id)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandInvokeError) and isinstance(error.original, AuthError):
            await ctx.send(str(error.original))
            return
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send("Missing or invalid arguments. Type !help to see usage.")
            return
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error("Command %s failed", ctx.command, exc_info=error)
        await ctx.send("Something went wrong. Please try again.")

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(HELP_TEXT)

    @bot.command(name="signup")
    async def signup_cmd(
        ctx: commands.Context,
        username: str,
        password: str,
        *,
        nickname: str | None = None,
    ):
        await _delete_credentials(ctx)
        user = await auth_for(ctx.author).sign_up(username, password, nickname)
        await ctx.send(f"Welcome, {user.nickname}! Your account {user.username} is ready.")

    @bot.command(name="signin")
    async def signin_cmd(ctx: commands.Context, username: str, password: str):
        await _delete_credentials(ctx)
        user = await auth_for(ctx.author).sign_in(username, password)
        await ctx.send(f"Signed in as {user.username} ({user.nickname}).")

    @bot.command(name="signout")
    async def signout_cmd(ctx: commands.Context):
        auth_for(ctx.author).sign_out()
        await ctx.send("Signed out.")

    @bot.command(name="whoami")
    async def whoami_cmd(ctx: commands.Context):
        user = auth_for(ctx.author).get_session()
        if user is None:
            await ctx.send("Nobody is signed in. Use !signin or !signup.")
            return
        await ctx.send(f"{user.username} ({user.nickname}), id {user.player_id}")

    @bot.command(name="nickname")
    async def nickname_cmd(ctx: commands.Context, *, nickname: str):
        user = await auth_for(ctx.author).change_nickname(nickname)
        await ctx.send(f"Nickname changed to {user.nickname}.")

    @bot.command(name="profile")
    async def profile_cmd(ctx: commands.Context):
        auth = auth_for(ctx.author)
        user = auth.get_session()
        if user is None:
            await ctx.send("Nobody is signed in. Use !signin or !signup.")
            return

        profile = await auth.get_player_profile(user.player_id)
        if profile is None:
            await ctx.send("Your player profile no longer exists. Please sign in again.")
            return

        await ctx.send(
            f"{profile.nickname} ({profile.username})\n"
            f"High score: {profile.high_score}\n"
            f"Best level: {profile.best_level}\n"
            f"Games played: {profile.games_played}\n"
            f"Correct answers: {profile.total_correct_answers}"
        )

    return bot
