from __future__ import annotations

import logging

from telegram.ext import (
    AIORateLimiter,
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
)

from .config import load_settings
from .handlers.notifications import handle_notify
from .handlers.start import handle_menu, handle_start
from .handlers.subscriptions import (
    handle_add,
    handle_add_hint,
    handle_edit,
    handle_list,
    handle_subscription_action,
)
from .handlers.upgrade import handle_paywall, handle_upgrade_confirm
from .i18n import Translator
from .logging_setup import configure_logging
from .services.notifications import TelegramNotificationBackend
from .services.parser import ParserService
from .services.reminders import ReminderScheduler
from .services.storage import SubscriptionStore
from .services.subscriptions import SubscriptionService
from .services.sweeper import ReconciliationSweeper

LOGGER = logging.getLogger(__name__)


async def _on_startup(application: Application) -> None:
    settings = application.bot_data["settings"]
    storage: SubscriptionStore = application.bot_data["storage"]
    sweeper: ReconciliationSweeper = application.bot_data["sweeper"]
    await storage.init_schema()
    # job-queue registrations live in memory, so re-issue them after every restart
    if settings.reconcile_interval_minutes > 0:
        # the loop sweeps once right away
        await sweeper.start()
        return
    try:
        await sweeper.sweep()
    except Exception:
        LOGGER.exception("Startup reconciliation sweep failed")


async def _on_shutdown(application: Application) -> None:
    sweeper: ReconciliationSweeper = application.bot_data["sweeper"]
    await sweeper.stop()


def build_application() -> Application:
    settings = load_settings()
    configure_logging(settings.log_level)

    application = (
        ApplicationBuilder()
        .token(settings.bot_token)
        .rate_limiter(AIORateLimiter())
        .post_init(_on_startup)
        .post_shutdown(_on_shutdown)
        .build()
    )
    if application.job_queue is None:
        raise RuntimeError("python-telegram-bot must be installed with the [job-queue] extra")

    storage = SubscriptionStore(settings.database_path)
    backend = TelegramNotificationBackend(application.job_queue, storage)
    scheduler = ReminderScheduler(
        backend,
        timezone=settings.scheduler_timezone,
        default_hour=settings.reminder_hour,
        prefix=settings.notification_prefix,
    )
    subscriptions = SubscriptionService(storage, scheduler, free_limit=settings.free_plan_limit)
    sweeper = ReconciliationSweeper(storage, scheduler, settings.reconcile_interval_minutes)

    application.bot_data.update(
        {
            "settings": settings,
            "storage": storage,
            "translator": Translator(),
            "parser": ParserService(),
            "scheduler": scheduler,
            "subscriptions": subscriptions,
            "sweeper": sweeper,
        }
    )

    application.add_handler(CommandHandler("start", handle_start))
    application.add_handler(CommandHandler("add", handle_add))
    application.add_handler(CommandHandler("edit", handle_edit))
    application.add_handler(CommandHandler("list", handle_list))
    application.add_handler(CommandHandler("notify", handle_notify))
    application.add_handler(CommandHandler("upgrade", handle_paywall))
    application.add_handler(CallbackQueryHandler(handle_menu, pattern=r"^nav:main$"))
    application.add_handler(CallbackQueryHandler(handle_list, pattern=r"^nav:list$"))
    application.add_handler(CallbackQueryHandler(handle_add_hint, pattern=r"^nav:add$"))
    application.add_handler(CallbackQueryHandler(handle_notify, pattern=r"^nav:notify$"))
    application.add_handler(CallbackQueryHandler(handle_paywall, pattern=r"^nav:upgrade$"))
    application.add_handler(CallbackQueryHandler(handle_upgrade_confirm, pattern=r"^upgrade:confirm$"))
    application.add_handler(CallbackQueryHandler(handle_subscription_action, pattern=r"^sub:"))

    return application


def main() -> None:
    application = build_application()
    LOGGER.info("Starting subscription reminder bot")
    application.run_polling(close_loop=False)


if __name__ == "__main__":
    main()
