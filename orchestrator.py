# -*- coding: utf-8 -*-
"""
Multi-account orchestration: parallel initial connect, then one watcher thread per account.
"""

import functools
import os
import queue
import sys
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import supervisor
from connection import Connection
from errors import ConfigurationError
from errors import NoConnectionsError


def connect_all(accounts, establish, sleep=time.sleep, max_workers=None, **retry_options):
    """
    Establish every account concurrently, each with the standard backoff.

    Returns:
        List of Connection for the accounts that could be reached,
        in the order the accounts were given
    """
    def connect(account):
        return supervisor.establish_with_retry(
            account, establish=establish, sleep=sleep, **retry_options
        )

    with ThreadPoolExecutor(max_workers=max_workers or os.cpu_count() or 1) as executor:
        connections = list(executor.map(connect, accounts))

    for account, connection in zip(accounts, connections):
        if connection is None:
            print(f"Not watching {account.host}: no connection.", file=sys.stderr)

    return [c for c in connections if c is not None]


def run(accounts, launcher=None, establish=None, sleep=time.sleep, max_workers=None, **retry_options):
    """
    Watch all accounts until every worker has stopped.

    Args:
        accounts: Sequence of AccountDescriptor
        launcher: Optional command launcher handed to every Connection
        establish: Optional (account) -> Connection
                   Defaults to Connection.establish with launcher
        sleep: Optional sleep function
        max_workers: Parallelism of the initial connect (default: CPU count)
        retry_options: attempts / initial_delay for the backoff

    Raises:
        ConfigurationError if accounts is empty
        NoConnectionsError if no account could be connected
        Whatever error ended a worker other than a lost connection;
        such an error stops the whole program, not just its account
    """
    if not accounts:
        raise ConfigurationError("no accounts configured")

    establish = establish or functools.partial(Connection.establish, launcher=launcher)
    connections = connect_all(
        accounts, establish, sleep=sleep, max_workers=max_workers, **retry_options
    )
    if not connections:
        raise NoConnectionsError("could not establish any connections")

    outcomes = queue.Queue()

    def watch(connection):
        try:
            supervisor.supervise(connection, establish=establish, sleep=sleep, **retry_options)
        except Exception as e:
            outcomes.put(e)
        else:
            outcomes.put(None)

    workers = [
        threading.Thread(
            target=watch, args=(connection,), name=f"watch-{connection.host}", daemon=True
        )
        for connection in connections
    ]
    for worker in workers:
        worker.start()

    for _ in workers:
        error = outcomes.get()
        if error is not None:
            raise error

    for worker in workers:
        worker.join()
