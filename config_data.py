# -*- coding: utf-8 -*-
"""
Configuration data: protocol defaults, timing and retry constants.
Pure data only - no functions, no side effects at import time.
"""

# ============================================================================
# ACCOUNT DEFAULTS
# ============================================================================

default_port = 143
default_starttls = True
default_boxes = ("INBOX",)

# ============================================================================
# IMAP SETTINGS
# ============================================================================

# Servers drop IDLE after 30 minutes (RFC 2177)
idle_timeout = 29 * 60 - 1

# NEW = RECENT and UNSEEN; the server does the filtering
new_mail_criterion = "NEW 1:*"

required_capability = "IDLE"

# ============================================================================
# RETRY SETTINGS
# ============================================================================

retry_attempts = 5
retry_initial_delay = 1

# ============================================================================
# COMMANDS
# ============================================================================

shell = "/bin/sh"

# ============================================================================
# CONFIG FILE
# ============================================================================

config_file_name = "imapnotify.toml"
config_env_var = "IMAPNOTIFY_CONFIG"
config_arg_name = "config"
password_prompt = "Password: "
