# -*- coding: utf-8 -*-
"""
Shared test fixtures for the mail watcher tests.
"""

import imaplib
import sys
from pathlib import Path

# Ensure project root is importable without pip install
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from unittest.mock import Mock


@pytest.fixture
def mock_session():
    """
    Factory fixture for mock IMAP sessions.

    results maps mailbox name -> raw UID SEARCH payload (e.g. b"5 6 7");
    tests may change it between detection passes.
    """
    def _make_mock_session(results):
        session = Mock()
        session.error = imaplib.IMAP4.error
        session.capabilities = ("IMAP4REV1", "IDLE")
        state = {}

        def select(mailbox, readonly=False):
            state["mailbox"] = mailbox.strip('"')
            return ("OK", [b"1"])

        def uid(command, charset, criterion):
            return ("OK", [results[state["mailbox"]]])

        session.select.side_effect = select
        session.uid.side_effect = uid
        return session

    return _make_mock_session
