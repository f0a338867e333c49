#!/usr/bin/env python3
"""
Configuration for Captain Hook
Centralized settings for the callback bridge and command wrappers.
"""

# Bridge Configuration
DEFAULT_BRIDGE_NAME = "captain_hook"
SOCKET_SUFFIX = ".sock"
TERMINATOR = "\r\n"
READ_SIZE = 65536  # bytes per socket read
STREAM_LIMIT = 64 * 1024 * 1024  # longest response a client will buffer
ENCODING = "utf-8"

# Environment variable the callback script reads the socket path from
SOCKET_ENV_VAR = "CAPTAIN_HOOK_SOCKET"

# Hardening (None = unbounded, wire compatible)
DEFAULT_IDLE_TIMEOUT = None  # seconds
DEFAULT_MAX_BUFFER_SIZE = None  # characters

# git-filter-repo
FILTER_REPO_PACKAGE = "git-filter-repo"
NOT_A_GIT_COMMAND = "is not a git command"
CALLBACK_KINDS = (
    "blob",
    "commit",
    "email",
    "filename",
    "message",
    "name",
    "refname",
    "reset",
    "tag",
)
