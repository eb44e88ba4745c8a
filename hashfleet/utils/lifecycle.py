"""
Process lifecycle helpers for the long-running periodic components.
"""

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


async def run_until_signalled(component):
    """
    Start a janitor/autoscaler style component and run it until SIGTERM/SIGINT.

    ``component.stop()`` is awaited before returning, so the component's
    Redis connection is closed while the event loop is still running.
    """
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()

    def _on_signal(signame: str):
        logger.info(f"Received {signame}, stopping {type(component).__name__}")
        stop_requested.set()

    for sig in STOP_SIGNALS:
        loop.add_signal_handler(sig, _on_signal, sig.name)

    try:
        await component.start()
        await stop_requested.wait()
    finally:
        await component.stop()
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)
