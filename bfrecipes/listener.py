from __future__ import annotations

import logging
import signal
import threading

from .assembly import targets_to_recipe
from .config import RecipeConfig
from .store import connect

logger = logging.getLogger("bfrecipes")

GLOB_CHARS = "*?["
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _as_str(value) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


def _install_stop_handlers(stop_event: threading.Event) -> dict:
    """
    Make SIGINT and SIGTERM set `stop_event`. Returns the previous handlers, so they can be restored.
    Signal handlers can only be installed from the main thread; elsewhere this does nothing.
    """
    if threading.current_thread() is not threading.main_thread():
        return {}

    def handler(signum, frame):
        logger.info(f"Caught {signal.Signals(signum).name}, stopping.")
        stop_event.set()

    return {signum: signal.signal(signum, handler) for signum in STOP_SIGNALS}


def _restore_handlers(previous: dict):
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def handle_message(store, message: str, outdir: str, config: RecipeConfig, telinfo=None):
    logger.info(f"Got message {message}")
    return targets_to_recipe(store, message, outdir, config, telinfo=telinfo)


def run_targets_listener(
    config: RecipeConfig,
    outdir: str,
    store=None,
    stop_event: threading.Event = None,
    telinfo=None,
):
    """
    Make a recipe for every target list announced on ``config.targets_channel``, until `stop_event` is set
    (by default on SIGINT or SIGTERM). A message that fails is logged and skipped.

    Parameters
    ----------
    store :
        A redis client. By default one is made from `config`. Either way it is closed on exit.
    telinfo : TelInfo, optional
        Telescope geometry. By default it is read from ``config.telinfo_file`` for each message.
    """
    store = store if store is not None else connect(config)
    stop_event = stop_event if stop_event is not None else threading.Event()

    previous_handlers = _install_stop_handlers(stop_event)
    pubsub = store.pubsub(ignore_subscribe_messages=True)

    try:
        channel = config.targets_channel
        if any(char in channel for char in GLOB_CHARS):
            pubsub.psubscribe(channel)
        else:
            pubsub.subscribe(channel)
        logger.info(f"Subscribed to {channel}")

        while not stop_event.is_set():
            item = pubsub.get_message(timeout=config.poll_timeout)
            if item is None or item.get("type") not in ("message", "pmessage"):
                continue

            message = _as_str(item["data"])
            try:
                handle_message(store, message, outdir, config, telinfo=telinfo)
            except Exception:
                logger.exception(f"Could not make a recipe for message {message}")

    finally:
        _restore_handlers(previous_handlers)
        pubsub.close()
        store.close()
        logger.info("Done")
