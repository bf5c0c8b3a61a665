import asyncio
import os

from helpdesk.client.context import ClientContext
from helpdesk.client.notifications import Toast
from helpdesk.config import Settings, configure_logging

# Path the watcher pretends to be viewing, e.g. /tickets/3 to mute that ticket
CURRENT_PATH = os.getenv("WATCH_PATH", "/")


def print_toast(toast: Toast) -> None:
    print(f"[{toast.title}] {toast.description} -> {toast.link}")


async def main():
    settings = Settings()
    configure_logging(settings.log_level)
    print(f"[WS] {settings.ws_url}")
    print("Ctrl+C to quit.\n")

    async with ClientContext(settings, current_path=lambda: CURRENT_PATH, show_toast=print_toast) as ctx:
        ctx.subscribe("comment-update", lambda e: print(f"  comment on ticket {e.data.get('ticketId')}"))
        while True:
            await asyncio.sleep(3600)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
