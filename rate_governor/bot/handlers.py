"""Telegram handlers and the rate-limit gate hook."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from telegram import Message, Update
from telegram.ext import ApplicationHandlerStop, ContextTypes

from rate_governor.bot.templates import ping_text, resolve_lang, start_text, status_text
from rate_governor.core.governor import CommandInvocation, MessageInvocation
from rate_governor.core.runtime import AppRuntime

LOGGER = logging.getLogger(__name__)


def _user_id(update: Update) -> Optional[str]:
    if update.effective_user is None:
        return None
    return str(update.effective_user.id)


def _chat_id(update: Update) -> Optional[str]:
    if update.effective_chat is None:
        return None
    return str(update.effective_chat.id)


def parse_command(text: str) -> tuple[Optional[str], Optional[str]]:
    """Split "/cmd@bot args" into (command, addressed bot username)."""
    raw = (text or "").strip()
    if not raw.startswith("/"):
        return None, None
    head = raw.split(maxsplit=1)[0][1:]
    name, _, target = head.partition("@")
    return name.strip() or None, target.strip() or None


class TelegramHandlers:
    def __init__(self, runtime: AppRuntime, known_commands: Iterable[str] = (), language: str = "en") -> None:
        self.runtime = runtime
        self.known_commands = frozenset(known_commands)
        self.lang = resolve_lang(language)

    async def _reply(self, message: Optional[Message], text: str) -> None:
        if message is None or not text:
            return
        await message.reply_text(text, disable_web_page_preview=True)

    async def gate(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Runs in handler group -1, ahead of every command and message handler."""
        # edits and other update kinds are not new traffic
        message = update.message or update.channel_post
        if message is None:
            return
        text = message.text or message.caption or ""
        user_id = _user_id(update)
        chat_id = _chat_id(update)

        command, target = parse_command(text)
        bot_username = context.bot.username or ""
        if target is not None and target.lower() != bot_username.lower():
            # addressed to another bot in the same chat
            command = None
        if command is not None and command in self.known_commands:
            outcome = self.runtime.governor.command_gate(
                CommandInvocation(user_id=user_id, channel_id=chat_id, command_name=command)
            )
        else:
            outcome = self.runtime.governor.middleware_gate(
                MessageInvocation(user_id=user_id, channel_id=chat_id, content=text, is_command=False)
            )

        if outcome is None:
            return
        LOGGER.info("update suppressed user_id=%s chat_id=%s command=%s", user_id, chat_id, command)
        await self._reply(message, outcome)
        raise ApplicationHandlerStop

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update.effective_message, start_text(self.lang))

    async def ping(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update.effective_message, ping_text())

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        info = self.runtime.get_runtime_status()
        await self._reply(
            update.effective_message,
            status_text(
                instance_id=info["instance_id"],
                policy_id=info["policy_id"],
                middleware_limit=info["middleware_limit"],
                lang=self.lang,
            ),
        )

    async def echo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        if message is None or not message.text:
            return
        await self._reply(message, message.text)
