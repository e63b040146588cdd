# -*- coding: utf-8 -*-
"""
Per-account supervision: reconnect with exponential backoff when the IDLE loop breaks.

States: detecting (running the IDLE loop), reconnecting (up to
retry_attempts tries), dead (worker returns, other accounts unaffected).
"""

import sys
import time

import config_data
from connection import Connection
from errors import ConnectivityError
from errors import DetectionError


def establish_with_retry(
    account,
    establish=None,
    sleep=time.sleep,
    attempts=config_data.retry_attempts,
    initial_delay=config_data.retry_initial_delay,
):
    """
    Try to open a Connection for account, doubling the wait after each failure.

    Args:
        account: AccountDescriptor
        establish: Optional (account) -> Connection
                   Defaults to Connection.establish
        sleep: Optional sleep function (for tests)
        attempts: Number of tries before giving up
        initial_delay: Wait after the first failure, in seconds

    Returns:
        Connection, or None when every attempt failed
    """
    establish = establish or Connection.establish
    wait = initial_delay

    for _ in range(attempts):
        try:
            return establish(account)
        except ConnectivityError as e:
            print(
                f"Connection to {account.host} failed: {e}. Retrying in {wait} seconds.",
                file=sys.stderr,
            )
            sleep(wait)
            wait *= 2

    print(f"Giving up on {account.host} after {attempts} attempts.", file=sys.stderr)
    return None


def supervise(connection, establish=None, sleep=time.sleep, **retry_options):
    """
    Keep an account served for as long as reconnection succeeds.

    Runs connection.idle_loop(); when it fails the old session is logged out
    and a brand new Connection (high-water mark 0) replaces it. Returns once
    establish_with_retry gives up.

    Errors other than DetectionError (ExecutionContextError in particular)
    are not handled here and end the worker.

    Args:
        connection: Established Connection
        establish: Optional (account) -> Connection
        sleep: Optional sleep function
        retry_options: attempts / initial_delay for establish_with_retry
    """
    account = connection.account

    while connection is not None:
        try:
            connection.idle_loop()
        except DetectionError as e:
            print(f"Connection to {account.host} failed: {e}.", file=sys.stderr)
        connection.logout()

        connection = establish_with_retry(
            account, establish=establish, sleep=sleep, **retry_options
        )
        if connection is not None:
            print(f"Connection for {account.host} reestablished.", file=sys.stderr)
