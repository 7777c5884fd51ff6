#!/usr/bin/env python
"""Script to watch live notifications of the configured user."""

import asyncio

import structlog

from catalog_notifications.auth import EnvironmentCredentialProvider
from catalog_notifications.config import get_settings
from catalog_notifications.logging import setup_logging
from catalog_notifications.services import NotificationApiClient, NotificationSession
from catalog_notifications.services.presentation import presentation_for

logger = structlog.get_logger("run_local")


async def watch() -> None:
    """Open a session and log notifications until cancelled."""
    settings = get_settings()
    api_client = NotificationApiClient(EnvironmentCredentialProvider(), settings)
    seen: set[int] = set()

    def on_change(session: NotificationSession) -> None:
        for notification in session.notifications:
            if notification.id in seen:
                continue
            seen.add(notification.id)
            logger.info(
                "Notification",
                label=presentation_for(notification).label,
                message=notification.message,
                is_read=notification.is_read,
                unread_count=session.unread_count,
            )

    def on_status(status) -> None:
        logger.info("Live connection status", status=status.value)

    session = NotificationSession(api_client, settings)
    session.add_listener(on_change)
    session.add_status_listener(on_status)
    try:
        async with session:
            logger.info("Watching notifications", api_base_url=settings.api_base_url)
            await asyncio.Event().wait()
    finally:
        api_client.close()


def main():
    """Run the notification watcher until interrupted.

    Reads the API base URL and access token from the
    ``CATALOG_NOTIFICATIONS_*`` environment variables.
    """
    setup_logging()
    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        logger.info("Notification watcher stopped")


if __name__ == "__main__":
    main()
