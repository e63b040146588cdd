# -*- coding: utf-8 -*-
"""
Test helpers shared across test modules.
"""

import imaplib
import re
import socket
import threading

from accounts import AccountDescriptor

# One IMAP astring argument: an atom or a quoted string
MAILBOX_ARGUMENT = re.compile(rb'^(?:"(?:[^"\\]|\\.)*"|[^\s"()]+)$')


def make_account(**overrides):
    """AccountDescriptor with harmless defaults"""
    settings = {
        "name": "work",
        "host": "imap.example.com",
        "username": "me",
        "password": "secret",
        "on_new_mail": "mbsync work",
        "boxes": ("INBOX",),
    }
    settings.update(overrides)
    return AccountDescriptor(**settings)


def unquote(argument):
    if argument.startswith(b'"'):
        argument = re.sub(rb"\\(.)", rb"\1", argument[1:-1])
    return argument.decode("ascii")


class ScriptedServer:
    """
    A tiny IMAP server on one end of a socket pair.

    It answers the handful of commands the watcher sends, rejects a
    mailbox argument that is not one atom or quoted string the way real
    servers do (BAD), and records every command line it received,
    without tags.

    Args:
        capabilities: CAPABILITY response payload
        mailboxes: Wire mailbox name -> UID SEARCH payload
    """

    def __init__(self, capabilities=b"IMAP4rev1 IDLE", mailboxes=None):
        self.capabilities = capabilities
        self.mailboxes = mailboxes if mailboxes is not None else {"INBOX": b""}
        self.received = []
        self.selected = None
        self.client, self.peer = socket.socketpair()
        self.client.settimeout(5)
        self.thread = threading.Thread(target=self.serve, daemon=True)
        self.thread.start()

    def send(self, *lines):
        self.peer.sendall(b"".join(line + b"\r\n" for line in lines))

    def serve(self):
        with self.peer, self.peer.makefile("rb") as lines:
            try:
                self.send(b"* OK scripted server ready")
                for line in lines:
                    tag, _, rest = line.rstrip(b"\r\n").partition(b" ")
                    self.received.append(rest)
                    if not self.answer(tag, rest):
                        break
            except OSError:
                # client hung up
                return

    def answer(self, tag, rest):
        command, _, argument = rest.partition(b" ")
        command = command.upper()

        if command == b"CAPABILITY":
            self.send(b"* CAPABILITY " + self.capabilities, tag + b" OK CAPABILITY completed")
        elif command == b"LOGIN":
            self.send(tag + b" OK LOGIN completed")
        elif command == b"EXAMINE":
            self.examine(tag, argument)
        elif command == b"UID" and argument.upper().startswith(b"SEARCH"):
            uids = self.mailboxes[self.selected]
            self.send(b"* SEARCH " + uids if uids else b"* SEARCH", tag + b" OK SEARCH completed")
        elif command == b"LOGOUT":
            self.send(b"* BYE logging out", tag + b" OK LOGOUT completed")
            return False
        else:
            self.send(tag + b" BAD unknown command")
        return True

    def examine(self, tag, argument):
        if not MAILBOX_ARGUMENT.match(argument):
            self.send(tag + b" BAD too many arguments")
            return

        name = unquote(argument)
        if name not in self.mailboxes:
            self.send(tag + b" NO no such mailbox")
            return

        self.selected = name
        self.send(b"* 3 EXISTS", tag + b" OK [READ-ONLY] EXAMINE completed")


class ScriptedIMAP4(imaplib.IMAP4):
    """imaplib.IMAP4 wired to a ScriptedServer instead of the network"""

    capability_line = b"IMAP4rev1 IDLE"
    mailboxes = {"INBOX": b""}
    servers = []

    def _create_socket(self, timeout=None):
        server = ScriptedServer(self.capability_line, dict(self.mailboxes))
        self.servers.append(server)
        return server.client

    def starttls(self, ssl_context=None):
        # A socket pair cannot do TLS; carry on in plaintext
        return "OK", [b"Begin TLS negotiation now"]


def scripted_imap4(**settings):
    """
    ScriptedIMAP4 subclass with its own server list, e.g.
    scripted_imap4(mailboxes={"Sent Items": b"4"}).
    """
    settings["servers"] = []
    return type("ScriptedIMAP4", (ScriptedIMAP4,), settings)
