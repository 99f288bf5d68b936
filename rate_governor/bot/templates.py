"""Telegram response templates for rate-limit hints."""

from __future__ import annotations

LANGS = ("ja", "en")


def resolve_lang(raw: str) -> str:
    lang = (raw or "").strip().lower()
    if lang in LANGS:
        return lang
    return "en"


def cooldown_hint_text(remaining_seconds: int, lang: str = "en") -> str:
    seconds = max(1, int(remaining_seconds))
    if resolve_lang(lang) == "ja":
        return f"操作が早すぎます。あと {seconds} 秒待ってから再度お試しください。"
    unit = "second" if seconds == 1 else "seconds"
    return f"Too fast. Please wait {seconds} {unit} before trying again."


def quota_hint_text(lang: str = "en") -> str:
    if resolve_lang(lang) == "ja":
        return "本日の利用回数の上限に達しました。明日またお試しください。"
    return "Daily usage limit reached. Please try again tomorrow."


def start_text(lang: str = "en") -> str:
    if resolve_lang(lang) == "ja":
        return (
            "Rate Governor ボットを開始しました。\n"
            "/ping で応答を確認できます。\n"
            "指令と自由文には頻度制限がかかる場合があります。"
        )
    return (
        "Rate Governor bot is ready.\n"
        "Use /ping to check the bot responds.\n"
        "Commands and free text may be rate limited."
    )


def ping_text() -> str:
    return "pong"


def status_text(instance_id: str, policy_id: str, middleware_limit: str, lang: str = "en") -> str:
    if resolve_lang(lang) == "ja":
        return (
            "稼働状態\n"
            f"- instance_id: {instance_id}\n"
            f"- policy: {policy_id}\n"
            f"- 自由文の頻度制限: {middleware_limit}"
        )
    return (
        "Runtime status\n"
        f"- instance_id: {instance_id}\n"
        f"- policy: {policy_id}\n"
        f"- free-text limiting: {middleware_limit}"
    )
