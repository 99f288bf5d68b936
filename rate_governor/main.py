"""Rate Governor Telegram bot entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import re

from telegram import BotCommand, Update
from telegram.ext import Application, ApplicationBuilder, CommandHandler, MessageHandler, TypeHandler, filters

from rate_governor.bot.handlers import TelegramHandlers
from rate_governor.bot.templates import resolve_lang
from rate_governor.config.policy import PolicyLoadError
from rate_governor.core.runtime import AppRuntime
from rate_governor.secrets.keyring_store import SecretStoreError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("telegram").setLevel(logging.WARNING)

BOT_COMMANDS = ("start", "ping", "status")


def _resolve_instance_id(raw: str) -> str:
    value = (raw or "default").strip()
    if not value:
        return "default"
    if not re.fullmatch(r"[A-Za-z0-9_-]{1,40}", value):
        raise ValueError("instance_id must match [A-Za-z0-9_-]{1,40}")
    return value


def _default_policy_path(workspace_root: Path, instance_id: str) -> Path:
    if instance_id == "default":
        return workspace_root / "config/policy.yaml"
    return workspace_root / "config" / "instances" / instance_id / "policy.yaml"


def _default_secret_service_name(instance_id: str) -> str:
    if instance_id == "default":
        return "rategovernor"
    return f"rategovernor.{instance_id}"


def _commands_for_lang(lang: str) -> list[BotCommand]:
    if lang == "ja":
        return [
            BotCommand("start", "クイックガイドを表示"),
            BotCommand("ping", "応答確認"),
            BotCommand("status", "稼働状態を表示"),
        ]
    return [
        BotCommand("start", "Open quick guide"),
        BotCommand("ping", "Check the bot responds"),
        BotCommand("status", "Show runtime status"),
    ]


def _build_post_init(lang: str):
    async def _post_init(application: Application) -> None:
        """Register command menu shown in Telegram chat UI."""
        await application.bot.set_my_commands(commands=_commands_for_lang(lang))

    return _post_init


def main() -> int:
    parser = argparse.ArgumentParser(description="Rate Governor Telegram runner")
    parser.add_argument(
        "--instance-id",
        help="Instance id for multi-bot isolation (default: default)",
    )
    args = parser.parse_args()

    workspace_root = Path(os.getenv("RG_WORKSPACE_ROOT", Path(__file__).resolve().parents[1]))
    instance_id = _resolve_instance_id(args.instance_id or os.getenv("RG_INSTANCE_ID", "default"))

    policy_path_raw = os.getenv("RG_POLICY_PATH", "").strip()
    if policy_path_raw:
        policy_path = Path(policy_path_raw)
    else:
        policy_path = _default_policy_path(workspace_root=workspace_root, instance_id=instance_id)

    secret_service_name = os.getenv("RG_SECRET_SERVICE_NAME", "").strip() or _default_secret_service_name(
        instance_id=instance_id
    )
    logging.info(
        "starting instance_id=%s policy=%s secret_service=%s",
        instance_id,
        policy_path,
        secret_service_name,
    )

    try:
        runtime = AppRuntime(
            policy_path=policy_path,
            secret_service_name=secret_service_name,
        )
    except SecretStoreError as exc:
        logging.error("startup blocked by missing secret: %s", exc)
        print(
            "Startup failed: required secret is missing in OS credential store.\n"
            f"- instance_id: {instance_id}\n"
            f"- secret_service: {secret_service_name}\n"
            f"- detail: {exc}\n"
            "Store the bot token first, e.g.:\n"
            f"- keyring set {secret_service_name} telegram_bot_token"
        )
        return 2
    except PolicyLoadError as exc:
        logging.error("startup blocked by invalid policy: %s", exc)
        print(
            "Startup failed: policy is invalid.\n"
            f"- policy: {policy_path}\n"
            f"- detail: {exc}"
        )
        return 2

    ui_lang = resolve_lang(runtime.policy.ui.language)
    handlers = TelegramHandlers(runtime, known_commands=BOT_COMMANDS, language=ui_lang)

    app = ApplicationBuilder().token(runtime.telegram_bot_token).post_init(_build_post_init(ui_lang)).build()

    # group -1 runs before the default group 0 and can stop it
    app.add_handler(TypeHandler(Update, handlers.gate), group=-1)
    app.add_handler(CommandHandler("start", handlers.start))
    app.add_handler(CommandHandler("ping", handlers.ping))
    app.add_handler(CommandHandler("status", handlers.status))
    app.add_handler(MessageHandler(filters.TEXT & (~filters.COMMAND), handlers.echo))

    app.run_polling(drop_pending_updates=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
