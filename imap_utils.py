# -*- coding: utf-8 -*-
"""
IMAP protocol utilities: session setup, IDLE implementation, mailbox search, logout.
"""

import base64
import imaplib
import select
import ssl

import config_data
from errors import CapabilityError
from errors import ConnectivityError

CRLF = b"\r\n"
imaplib.Commands["IDLE"] = ("AUTH", "SELECTED")


def check(connection, command, result):
    """
    Unpack an imaplib (typ, data) result, raising on anything but OK.

    imaplib reports NO/BAD as a return value for some commands
    (SELECT, SEARCH); turn those into connection.error like the rest.
    """
    typ, data = result
    if typ != "OK":
        raise connection.error(f"{command} failed: {typ} {data!r}")
    return data


def idle(connection, timeout=config_data.idle_timeout):
    """
    Implements IMAP IDLE extension as described in RFC 2177.
    Waits until state of current mailbox changes.

    Args:
        connection: IMAP4 connection
        timeout: Maximum idle time in seconds (default: 29 minutes)

    Returns:
        (typ, untagged_responses) tuple
    """
    if "IDLE" not in connection.capabilities:
        raise connection.error("server does not support IDLE command.")

    connection.untagged_responses = {}
    tag = connection._command("IDLE")
    connection._get_response()

    select.select([connection.socket()], [], [], timeout)

    connection.send(b"DONE" + CRLF)
    typ, data = connection._command_complete("IDLE", tag)
    return typ, connection.untagged_responses


def fetch_capabilities(connection):
    """
    Ask the server for its capabilities after login.

    Servers commonly advertise more (IDLE among them) once authenticated,
    so the pre-login list imaplib cached is refreshed as well.
    """
    data = check(connection, "CAPABILITY", connection.capability())
    raw = data[0] if data and data[0] else b""
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", "replace")
    capabilities = tuple(raw.upper().split())
    connection.capabilities = capabilities
    return capabilities


def encode_mailbox(name):
    """
    Encode a mailbox name in IMAP modified UTF-7 (RFC 3501, section 5.1.3).

    imaplib sends arguments as ASCII, so "Entwürfe" has to travel as
    "Entw&APw-rfe".
    """
    encoded = []
    pending = []

    def flush():
        if pending:
            chunk = base64.b64encode("".join(pending).encode("utf-16-be"))
            encoded.append("&" + chunk.rstrip(b"=").decode("ascii").replace("/", ",") + "-")
            pending.clear()

    for char in name:
        if 0x20 <= ord(char) <= 0x7E:
            flush()
            encoded.append("&-" if char == "&" else char)
        else:
            pending.append(char)
    flush()
    return "".join(encoded)


def quote_mailbox(name):
    """
    Encode and quote a mailbox name as an IMAP quoted string.

    imaplib puts arguments on the wire as given, so "Sent Items" would
    arrive as two arguments.
    """
    name = encode_mailbox(name)
    return '"%s"' % name.replace("\\", "\\\\").replace('"', '\\"')


def examine(connection, mailbox):
    """Select mailbox read-only (EXAMINE), so no flags are touched"""
    return check(
        connection, "EXAMINE", connection.select(quote_mailbox(mailbox), readonly=True)
    )


def search_new_uids(connection, mailbox, criterion=config_data.new_mail_criterion):
    """
    Examine mailbox and return the UIDs matching criterion.

    Returns:
        set of int UIDs
    """
    examine(connection, mailbox)
    data = check(connection, "UID SEARCH", connection.uid("SEARCH", None, criterion))
    uids = set()
    for chunk in data:
        if chunk:
            uids.update(int(uid) for uid in chunk.split())
    return uids


def open_session(account, ssl_context=None):
    """
    Connect, authenticate, verify IDLE support and examine the first mailbox.

    Either every step succeeds or the half-open connection is logged out
    and the error is raised.

    Args:
        account: AccountDescriptor
        ssl_context: Optional ssl.SSLContext (default: verifying context)

    Returns:
        Authenticated imaplib.IMAP4 connection with the first mailbox examined

    Raises:
        CapabilityError if the server lacks IDLE,
        ConnectivityError for every other failure
    """
    context = ssl_context or ssl.create_default_context()
    connection = None
    stage = "connect"
    try:
        if account.starttls:
            connection = imaplib.IMAP4(account.host, account.port)
            connection.starttls(ssl_context=context)
        else:
            connection = imaplib.IMAP4_SSL(
                account.host, account.port, ssl_context=context
            )

        stage = "login"
        connection.login(account.username.strip(), account.password.strip())

        stage = "capability"
        capabilities = fetch_capabilities(connection)
        if config_data.required_capability not in capabilities:
            raise CapabilityError(account.host, capabilities)

        stage = "examine"
        examine(connection, account.boxes[0])

    except CapabilityError:
        disconnect(connection)
        raise
    except (OSError, ValueError, imaplib.IMAP4.error) as e:
        # imaplib sends arguments as ASCII: non-ASCII secrets fail with UnicodeEncodeError
        disconnect(connection)
        raise ConnectivityError(account.host, e, stage) from e

    return connection


def disconnect(connection):
    """Log out, ignoring failures: a broken connection cannot say goodbye"""
    if connection is None:
        return
    try:
        connection.logout()
    except (OSError, imaplib.IMAP4.error):
        pass
