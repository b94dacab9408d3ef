"""
tools/safety.py — Sensitive File & Command Blocklist

Two public checks used by the filesystem and terminal tools:

    is_blocked_file(path)
        → True when the path looks like a credential/key/secret file

    check_command(command)
        → (allowed: bool, reason: str)

Both are default-allow: anything not matching a blocked pattern passes.
Commands are also rejected when they mention a blocked file, so
`cat .env` is stopped even though `cat` itself is harmless.
"""

from __future__ import annotations

import re


# ─────────────────────────────────────────────────────────────────────────────
# Sensitive files
# ─────────────────────────────────────────────────────────────────────────────

BLOCKED_FILE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\.env(\.|$)", re.I),              "environment files"),
    (re.compile(r"\.key$", re.I),                   "private keys"),
    (re.compile(r"\.pem$", re.I),                   "certificates"),
    (re.compile(r"\.p12$", re.I),                   "certificates"),
    (re.compile(r"\.pfx$", re.I),                   "certificates"),
    (re.compile(r"\.jks$", re.I),                   "java keystores"),
    (re.compile(r"\.keystore$", re.I),              "keystores"),
    (re.compile(r"id_rsa$", re.I),                  "SSH private keys"),
    (re.compile(r"id_ed25519$", re.I),              "SSH private keys"),
    (re.compile(r"\.ssh/.*$", re.I),                "SSH directory contents"),
    (re.compile(r"\.aws/credentials$", re.I),       "AWS credentials"),
    (re.compile(r"\.docker/config\.json$", re.I),   "Docker credentials"),
    (re.compile(r"\.npmrc$", re.I),                 "npm credentials"),
    (re.compile(r"\.pypirc$", re.I),                "PyPI credentials"),
    (re.compile(r"secrets?/", re.I),                "secrets directories"),
    (re.compile(r"credentials?$", re.I),            "credential files"),
    (re.compile(r"password$", re.I),                "password files"),
    (re.compile(r"token$", re.I),                   "token files"),
]


def is_blocked_file(path: str) -> bool:
    """True if the path matches any sensitive-file pattern."""
    normalized = str(path).replace("\\", "/")
    return any(pattern.search(normalized) for pattern, _ in BLOCKED_FILE_PATTERNS)


# ─────────────────────────────────────────────────────────────────────────────
# Dangerous commands  (checked on the raw command string)
# ─────────────────────────────────────────────────────────────────────────────

BLOCKED_COMMAND_PATTERNS: list[tuple[re.Pattern, str]] = [
    # Privilege escalation
    (re.compile(r"^sudo\s", re.I),                          "sudo is not permitted"),
    (re.compile(r"^su\s", re.I),                            "su is not permitted"),
    # Destructive file operations
    (re.compile(r"\brm\s+(-[rf]*\s+)?/(\s|$|\w)", re.I),    "rm targeting the root filesystem is blocked"),
    (re.compile(r"\bmv\s+.*/\s*$", re.I),                   "moving files to / is blocked"),
    (re.compile(r"\bchmod\s+777\s+/", re.I),                "chmod 777 on root paths is blocked"),
    (re.compile(r"\bchown\s+.*/", re.I),                    "chown on absolute paths is blocked"),
    # User management
    (re.compile(r"\bpasswd\b", re.I),                       "user management is blocked"),
    (re.compile(r"\buseradd\b", re.I),                      "user management is blocked"),
    (re.compile(r"\buserdel\b", re.I),                      "user management is blocked"),
    # Disk operations
    (re.compile(r"\bmkfs\b", re.I),                         "filesystem formatting is blocked"),
    (re.compile(r"\bformat\b", re.I),                       "disk formatting is blocked"),
    (re.compile(r"\bfdisk\b|\bdiskpart\b", re.I),           "disk partitioning is blocked"),
    (re.compile(r"\bdd\s+if=", re.I),                       "raw disk copies are blocked"),
    # System power
    (re.compile(r"\b(reboot|shutdown|halt|poweroff)\b", re.I), "system control commands are blocked"),
    # Process killing
    (re.compile(r"\bkill\s+-9\s+1\b", re.I),                "killing init (PID 1) is blocked"),
    (re.compile(r"\bkillall\b", re.I),                      "killall is blocked"),
    # Fork bomb
    (re.compile(r":\(\)\s*\{.*\}\s*;\s*:", re.I),           "fork bomb detected"),
    # Account databases
    (re.compile(r"\bcat\s+/etc/(passwd|shadow)\b", re.I),   "reading account databases is blocked"),
    # Pipe-to-shell
    (re.compile(r"\b(wget|curl)\s+.*\|\s*sh\b", re.I),      "download-to-shell is blocked"),
    # Code injection
    (re.compile(r"\beval\s+", re.I),                        "eval is blocked"),
    (re.compile(r"\bexec\s+", re.I),                        "exec is blocked"),
    # Device redirects
    (re.compile(r">\s*/dev/\w+", re.I),                     "redirecting to device files is blocked"),
]

_BLOCKED_HELP = """
🚫 Blocked commands include:
- System administration commands (sudo, su)
- Destructive file operations (rm -rf /)
- User management commands
- System restart/shutdown commands
- Potentially dangerous redirects
- Code injection attempts

💡 Try simpler, safer commands like:
- ls, pwd, cd
- cat, head, tail (for reading files)
- grep, find (for searching)
- git commands
- npm/yarn commands"""

_SENSITIVE_HELP = """
🚫 Commands cannot reference sensitive files such as:
- Environment files (.env, .env.local, etc.)
- Private keys (.key, .pem, id_rsa, etc.)
- Certificates (.p12, .pfx, .jks, etc.)
- Credential files (.npmrc, .aws/credentials, etc.)
- SSH configuration files
- Password/token files"""


def check_command(command: str) -> tuple[bool, str]:
    """
    Decide whether a shell command may run.

    Returns:
        (allowed, reason). When blocked, `reason` is the full user-facing
        explanation that ends up in the tool event.
    """
    for pattern, why in BLOCKED_COMMAND_PATTERNS:
        if pattern.search(command):
            return False, (
                f'Command blocked for security reasons ({why}): "{command}"\n'
                f"{_BLOCKED_HELP}"
            )

    if is_blocked_file(command):
        return False, (
            f'Command blocked - contains reference to sensitive files: "{command}"\n'
            f"{_SENSITIVE_HELP}"
        )

    return True, "Command is permitted"
