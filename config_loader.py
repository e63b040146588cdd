# -*- coding: utf-8 -*-
"""
Configuration file loading: locate imapnotify.toml, resolve passwords, build account descriptors.

File format: one top-level table per account, e.g.

    [work]
    host = "imap.example.com"
    port = 993
    starttls = false
    username = "me"
    password_eval = "pass show mail/work"
    on_new_mail = "mbsync work"
    on_new_mail_post = "notmuch new"
    boxes = ["INBOX", "Lists"]
"""

import dataclasses
import getpass
import os
import subprocess
import sys
import tomllib

import config_data
from accounts import AccountDescriptor
from errors import ConfigurationError

ACCOUNT_KEYS = (
    "host",
    "port",
    "starttls",
    "username",
    "password",
    "on_new_mail",
    "on_new_mail_post",
    "boxes",
    "per_mailbox_marks",
)
REQUIRED_KEYS = ("host", "username", "on_new_mail", "boxes")


def config_search_paths(name=config_data.config_file_name):
    """Candidate config file paths in XDG Base Directory order"""
    config_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if not config_home:
        config_home = os.path.join(os.path.expanduser("~"), ".config")

    config_dirs = os.environ.get("XDG_CONFIG_DIRS", "").strip() or "/etc/xdg"

    paths = [os.path.join(config_home, name)]
    for directory in config_dirs.split(":"):
        if directory.strip():
            paths.append(os.path.join(directory.strip(), name))
    return paths


def get_config_path(
    env_var=config_data.config_env_var, arg_name=config_data.config_arg_name
):
    """
    Get config file path from environment, command line args, or XDG directories.

    Priority:
    1. Environment variable
    2. Command line --arg=value or --arg value
    3. First existing file among config_search_paths()

    Raises:
        ConfigurationError if no config file can be found
    """
    value = os.environ.get(env_var)
    if value:
        return value

    for i, arg in enumerate(sys.argv):
        if arg.startswith(f"--{arg_name}="):
            return arg.split("=", 1)[1]
        elif arg == f"--{arg_name}" and i + 1 < len(sys.argv):
            return sys.argv[i + 1]

    for path in config_search_paths():
        if os.path.isfile(path):
            return path

    raise ConfigurationError(f"{config_data.config_file_name}: file not found")


def eval_password(command, shell=config_data.shell):
    """
    Run command through the shell and return its stdout, or None on failure.

    Output is returned untrimmed; whitespace is stripped at login.
    """
    try:
        child = subprocess.run([shell, "-c", command], stdout=subprocess.PIPE)
    except OSError as e:
        print(f"Password eval failed: {e}", file=sys.stderr)
        return None

    if child.returncode != 0:
        print(f"Password eval failed: exit status {child.returncode}", file=sys.stderr)
        return None

    try:
        return child.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        print(f"Password eval failed: {e}", file=sys.stderr)
        return None


def resolve_password(name, table, prompt=None, evaluate=None):
    """
    Resolve an account's password.

    Priority:
    1. password_eval, run through the shell
    2. Literal password
    3. Interactive prompt (masked input)

    Args:
        name: Account name, used in the prompt
        table: Raw account table from the config file
        prompt: Optional (prompt_text) -> str, defaults to getpass.getpass
        evaluate: Optional (command) -> str or None, defaults to eval_password
    """
    prompt = prompt or getpass.getpass
    evaluate = evaluate or eval_password

    command = table.get("password_eval")
    if command is not None:
        if not isinstance(command, str):
            raise ConfigurationError(f"{name}: password_eval must be a string")
        password = evaluate(command)
        if password is not None:
            return password

    password = table.get("password")
    if password is not None:
        return password

    try:
        return prompt(f"{name} {config_data.password_prompt}")
    except (EOFError, OSError) as e:
        raise ConfigurationError(f"{name}: could not read password: {e}") from e


def parse_account(name, table, **password_options):
    """Build an AccountDescriptor from one account table"""
    if not isinstance(table, dict):
        raise ConfigurationError(f"{name}: expected a table of account settings")

    missing = [key for key in REQUIRED_KEYS if key not in table]
    if missing:
        raise ConfigurationError(f"{name}: missing {', '.join(missing)}")

    boxes = table["boxes"]
    if isinstance(boxes, str) or not isinstance(boxes, list):
        raise ConfigurationError(f"{name}: boxes must be a list of mailbox names")

    # Validate everything else before running password_eval or prompting.
    settings = {key: table[key] for key in ACCOUNT_KEYS if key in table and key != "password"}
    account = AccountDescriptor(name=name, password="", **settings)

    return dataclasses.replace(
        account, password=resolve_password(name, table, **password_options)
    )


def parse_accounts(data, **password_options):
    """
    Turn a parsed config tree into account descriptors, in file order.

    Raises:
        ConfigurationError on invalid accounts or when there are none
    """
    accounts = [
        parse_account(name, table, **password_options) for name, table in data.items()
    ]
    if not accounts:
        raise ConfigurationError(f"no accounts in {config_data.config_file_name}")
    return accounts


def load_accounts(path, **password_options):
    try:
        with open(path, "rb") as fp:
            data = tomllib.load(fp)
    except OSError as e:
        raise ConfigurationError(f"cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"cannot parse {path}: {e}") from e

    return parse_accounts(data, **password_options)


def configure():
    """Locate and load the configuration file"""
    return load_accounts(get_config_path())
