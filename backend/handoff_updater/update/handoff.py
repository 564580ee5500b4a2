"""
Wrapper handoff

The server is started by an external wrapper process. To request an action
(shutdown, update, restart, restore) the server writes the action's code to
the control file and exits with the same code as status. The wrapper reads
either signal, so losing one of them still leaves the other.
"""

import logging
import os
import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

from handoff_updater.core.config import HANDOFF_GRACE_SECONDS
from handoff_updater.core.lifecycle import ApplicationContext
from handoff_updater.update.models import ControlCode

logger = logging.getLogger(__name__)


class WrapperHandoff:
    """
    Writes the control code and terminates the process

    Args:
        control_file: Path of the control file read by the wrapper
        app_context: Context closed right before exiting
        grace_seconds: Delay letting in-flight responses finish
        exit_func: Terminates the process with the given status
    """

    def __init__(
        self,
        control_file: Path,
        app_context: ApplicationContext | None = None,
        grace_seconds: float = HANDOFF_GRACE_SECONDS,
        exit_func: Callable[[int], None] = os._exit,
    ):
        self.control_file = control_file
        self.app_context = app_context
        self.grace_seconds = grace_seconds
        self.exit_func = exit_func

    def signal_and_exit(self, code: ControlCode | int) -> threading.Thread:
        """
        Start the handoff on its own thread and return immediately

        The caller can finish its own work (e.g. send an HTTP response)
        during the grace period. There is no way to cancel the handoff.

        Args:
            code: Control code, also used as process exit status

        Returns:
            threading.Thread: The started handoff thread
        """
        return_code = int(code)
        thread = threading.Thread(
            target=self._run,
            args=(return_code,),
            name=f"wrapper-handoff-{return_code}",
        )
        thread.start()
        return thread

    def write_control_file(self, code: int) -> bool:
        """
        Write the control code, replacing any previous content

        Returns:
            bool: True if the file was written
        """
        try:
            logger.debug(f"Writing control ID {code} to {self.control_file}")
            self.control_file.parent.mkdir(parents=True, exist_ok=True)
            self.control_file.write_text(str(code))
            return True
        except OSError as e:
            logger.error(f"Unable to write control code to file. Wrapper might not behave as expected: {e}")
            return False

    def _run(self, code: int) -> None:
        self.write_control_file(code)

        # Wait just enough for the triggering request to be completed
        time.sleep(self.grace_seconds)

        if self.app_context is not None:
            self.app_context.close()

        logger.info(f"Exiting with return code {code}")
        sys.stdout.flush()
        sys.stderr.flush()
        self.exit_func(code)
