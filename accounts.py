# -*- coding: utf-8 -*-
"""
Account descriptor: everything the watcher needs to know about one mailbox account.
"""

from dataclasses import dataclass, field

import config_data
from errors import ConfigurationError


@dataclass(frozen=True)
class AccountDescriptor:
    host: str
    username: str
    password: str = field(repr=False)
    on_new_mail: str
    boxes: tuple = config_data.default_boxes
    port: int = config_data.default_port
    starttls: bool = config_data.default_starttls
    on_new_mail_post: str = None
    per_mailbox_marks: bool = False
    name: str = field(default="", compare=False)

    def __post_init__(self):
        # Lists from TOML arrive mutable; freeze them.
        object.__setattr__(self, "boxes", tuple(self.boxes))

        label = self.name or self.host or "account"
        if not isinstance(self.host, str) or not self.host.strip():
            raise ConfigurationError(f"{label}: host must be a non-empty string")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigurationError(f"{label}: port must be an integer, got {self.port!r}")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"{label}: port out of range: {self.port}")
        if not isinstance(self.starttls, bool):
            raise ConfigurationError(f"{label}: starttls must be true or false")
        for key in ("username", "password", "on_new_mail"):
            if not isinstance(getattr(self, key), str):
                raise ConfigurationError(f"{label}: {key} must be a string")
        if self.on_new_mail_post is not None and not isinstance(self.on_new_mail_post, str):
            raise ConfigurationError(f"{label}: on_new_mail_post must be a string")
        if not self.boxes:
            raise ConfigurationError(f"{label}: at least one mailbox must be watched")
        if not all(isinstance(box, str) and box for box in self.boxes):
            raise ConfigurationError(f"{label}: mailbox names must be non-empty strings")
