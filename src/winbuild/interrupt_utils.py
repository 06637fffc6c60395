"""KeyboardInterrupt propagation for worker threads.

A scheduler may run compiles on a thread pool. A KeyboardInterrupt caught on a
worker thread would otherwise stop only that thread.
"""

import _thread
import threading


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Forward an interrupt to the main thread, then re-raise it.

    Args:
        ke: The interrupt being handled

    Raises:
        KeyboardInterrupt: Always
    """
    if threading.current_thread() is not threading.main_thread():
        _thread.interrupt_main()
    raise ke
