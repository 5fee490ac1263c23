#!/usr/bin/env python3
"""
Point the Telegram bot at this backend's webhook, or remove the webhook.

Usage:
    python scripts/set_webhook.py https://abcd.ngrok.app
    python scripts/set_webhook.py --delete

The webhook path is appended for you. Run the server with
TELEGRAM_UPDATE_MODE=webhook afterwards, or it will delete the webhook
again on startup to poll instead.
"""

import argparse
import asyncio
import sys

# Add project root to path
sys.path.insert(0, ".")

from backend import config
from backend.services.telegram_bot import TelegramAPIError, telegram_bot

WEBHOOK_PATH = "/telegram/webhook"


async def main(public_url: str | None, delete: bool) -> int:
    try:
        if delete:
            await telegram_bot.delete_webhook()
            print("Webhook removed")
            return 0

        webhook_url = f"{public_url.rstrip('/')}{WEBHOOK_PATH}"
        await telegram_bot.set_webhook(
            webhook_url,
            secret_token=config.settings.TELEGRAM_WEBHOOK_SECRET or None,
        )
        print(f"Webhook set: {webhook_url}")
        return 0
    except TelegramAPIError as e:
        print(f"Telegram rejected the request: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("public_url", nargs="?", help="Public base URL that reaches this backend")
    parser.add_argument("--delete", action="store_true", help="Remove the webhook instead")
    args = parser.parse_args()

    if not args.delete and not args.public_url:
        parser.error("public_url is required unless --delete is given")

    sys.exit(asyncio.run(main(args.public_url, args.delete)))
