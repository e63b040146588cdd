#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
New mail watcher daemon.
Monitors every configured IMAP account using IDLE and runs its commands when mail arrives.
Automatically reconnects with exponential backoff on failures.
"""

import sys

import config_data
import config_loader
import orchestrator
from errors import ConfigurationError
from errors import NoConnectionsError


def main():
    try:
        accounts = config_loader.configure()
    except ConfigurationError as e:
        sys.exit(f"Could not process configuration file {config_data.config_file_name}: {e}")

    try:
        orchestrator.run(accounts)
    except (ConfigurationError, NoConnectionsError) as e:
        sys.exit(f"Error: {e}")


if __name__ == "__main__":
    main()
