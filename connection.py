# -*- coding: utf-8 -*-
"""
Per-account connection: new mail detection over IDLE and the notification trigger.
"""

import imaplib
import sys
import time

import config_data
import imap_utils
import notifier
from errors import DetectionError


def is_new_mail(uids, last_uid):
    """
    Decide whether a search result is a genuine arrival.

    An empty result counts too (the mailbox changed, e.g. mail was read
    elsewhere). Any UID at or below last_uid means the server surfaced
    mail we already reported, and the whole result is ignored.
    """
    return all(uid > last_uid for uid in uids)


class Connection:
    """
    An authenticated session for one account, plus the highest UID already
    notified.

    The mark is shared by all watched mailboxes unless the account sets
    per_mailbox_marks: UIDs are only unique within one mailbox, so with
    several boxes a shared mark can hide or repeat notifications.
    """

    def __init__(self, account, session, launcher=None, idle_timeout=config_data.idle_timeout):
        self.account = account
        self.session = session
        self.launcher = launcher
        self.idle_timeout = idle_timeout
        self.last_uid = 0
        self.marks = dict.fromkeys(account.boxes, 0)

    @classmethod
    def establish(cls, account, open_session=None, launcher=None):
        """
        Open a fresh session for account.

        Raises:
            ConnectivityError / CapabilityError from open_session
        """
        open_session = open_session or imap_utils.open_session
        return cls(account, open_session(account), launcher=launcher)

    @property
    def host(self):
        return self.account.host

    def search(self):
        """Returns {mailbox: set of new UIDs} for every watched mailbox, in order"""
        return {
            box: imap_utils.search_new_uids(self.session, box)
            for box in self.account.boxes
        }

    def check_new_mail(self):
        """
        Run one detection pass and notify if it found new mail.

        Returns:
            True if the notification commands were launched
        """
        found = self.search()
        uids = set().union(*found.values())

        if self.account.per_mailbox_marks:
            fresh = all(is_new_mail(found[box], self.marks[box]) for box in found)
        else:
            fresh = is_new_mail(uids, self.last_uid)

        if not fresh:
            return False

        print(
            time.strftime("%Y.%m.%d %H.%M.%S"),
            f"{self.account.name or self.host}: new mail {sorted(uids)}",
            file=sys.stderr,
        )
        notifier.notify(
            self.account.on_new_mail,
            self.account.on_new_mail_post,
            launcher=self.launcher,
        )

        self.last_uid = max(self.last_uid, max(uids, default=0))
        for box, box_uids in found.items():
            self.marks[box] = max(self.marks[box], max(box_uids, default=0))
        return True

    def idle_loop(self):
        """
        Detect, notify, IDLE, forever.

        Raises:
            DetectionError on any I/O failure; the loop never retries itself
        """
        while True:
            try:
                self.check_new_mail()
                imap_utils.check(
                    self.session, "IDLE", imap_utils.idle(self.session, self.idle_timeout)
                )
            except (OSError, ValueError, imaplib.IMAP4.error) as e:
                raise DetectionError(str(e) or repr(e)) from e

    def logout(self):
        imap_utils.disconnect(self.session)
