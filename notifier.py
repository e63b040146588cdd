# -*- coding: utf-8 -*-
"""
Notification commands: fire-and-forget launch of the configured shell commands.
"""

import subprocess
import sys
import threading

import config_data
from errors import CommandLaunchError
from errors import ExecutionContextError


def launch_command(command, shell=config_data.shell):
    """
    Start command through the shell without waiting for it.

    Args:
        command: Command string passed to `shell -c`
        shell: Interpreter path

    Returns:
        subprocess.Popen of the running command

    Raises:
        CommandLaunchError if the process could not be started
    """
    try:
        return subprocess.Popen([shell, "-c", command])
    except (OSError, ValueError) as e:
        raise CommandLaunchError(command, e) from e


def _launch_all(command, post_command, launcher):
    try:
        launcher(command)
    except CommandLaunchError as e:
        print(f"Command failed: {e}", file=sys.stderr)
        return False

    if post_command:
        try:
            launcher(post_command)
        except CommandLaunchError as e:
            print(f"Command failed: {e}", file=sys.stderr)
    return True


def notify(command, post_command=None, launcher=None):
    """
    Launch command, then post_command if the first one started.

    The launches happen on a short-lived thread that is joined before
    returning; only spawning is waited for, never the commands themselves.

    Args:
        command: Primary command string
        post_command: Optional command started after the primary one
        launcher: Optional (command) -> object, raising CommandLaunchError
                  Defaults to launch_command

    Returns:
        True if the primary command was started

    Raises:
        ExecutionContextError if the spawning thread failed for any reason
        other than a command that could not be started
    """
    launcher = launcher or launch_command
    outcome = {}

    def spawn():
        try:
            outcome["launched"] = _launch_all(command, post_command, launcher)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=spawn, name="notify", daemon=True)
    worker.start()
    worker.join()

    if "error" in outcome:
        error = outcome["error"]
        raise ExecutionContextError(
            f"unexpected error while launching {command!r}: {error!r}"
        ) from error
    return outcome["launched"]
