# -*- coding: utf-8 -*-
"""
Exception types shared by the watcher modules.
"""


class ImapNotifyError(Exception):
    """Base class for all watcher errors"""


class ConfigurationError(ImapNotifyError):
    """No usable accounts, or the configuration file could not be processed"""


class ConnectivityError(ImapNotifyError):
    """
    Establishing a session failed.

    stage is one of "connect", "login", "capability", "examine" and is
    informational only: every stage is retried the same way.
    """

    def __init__(self, host, cause, stage="connect"):
        self.host = host
        self.cause = cause
        self.stage = stage
        super().__init__(f"{stage} failed for {host}: {cause}")


class CapabilityError(ConnectivityError):
    """Server does not advertise IDLE"""

    def __init__(self, host, capabilities):
        self.capabilities = tuple(capabilities)
        super().__init__(
            host,
            "server does not support IDLE (has: %s)" % " ".join(self.capabilities),
            stage="capability",
        )


class DetectionError(ImapNotifyError):
    """I/O failure inside the detection loop"""


class CommandLaunchError(ImapNotifyError):
    """An external command could not be started"""

    def __init__(self, command, cause):
        self.command = command
        self.cause = cause
        super().__init__(f"{command!r}: {cause}")


class ExecutionContextError(ImapNotifyError):
    """Unexpected failure inside the thread that spawns notification commands"""


class NoConnectionsError(ImapNotifyError):
    """Every configured account failed its initial connection attempts"""
