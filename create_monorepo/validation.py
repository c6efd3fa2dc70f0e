"""Pure validation and normalisation helpers for user input.

None of these functions perform I/O.  ``validate_name`` follows the npm
package-name rules for new packages and reports every violation it finds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import quote

PACKAGE_MANAGERS: tuple[str, ...] = ("npm", "yarn", "pnpm")

TEMPLATES: tuple[str, ...] = (
    "default",
    "next-fullstack",
    "vue-fullstack",
    "react-fullstack",
    "minimal",
    "enterprise",
)

MIN_PORT = 1024
MAX_PORT = 65535

MAX_NAME_LENGTH = 214

# Capitals and spaces are reported by their own rules.
_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9_\- ]")
_SPECIAL_CHARS = re.compile(r"[~'!()*]")
_RESERVED_NAMES = frozenset({"node_modules", "favicon.ico"})

# Node.js core modules; npm refuses these as package names.
_CORE_MODULES = frozenset({
    "assert", "buffer", "child_process", "cluster", "console", "constants",
    "crypto", "dgram", "dns", "domain", "events", "fs", "http", "http2",
    "https", "module", "net", "os", "path", "perf_hooks", "process",
    "punycode", "querystring", "readline", "repl", "stream", "string_decoder",
    "sys", "timers", "tls", "tty", "url", "util", "v8", "vm", "worker_threads",
    "zlib",
})


@dataclass
class ValidationResult:
    """Outcome of :func:`validate_name`."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_name(raw: str | None) -> ValidationResult:
    """Validate *raw* as a project/package name.

    Every rule is checked independently and all violations are returned.
    ``None`` and the empty string are invalid.
    """
    if raw is None:
        return ValidationResult(valid=False, errors=["name cannot be null"])
    if not isinstance(raw, str):
        return ValidationResult(valid=False, errors=["name must be a string"])

    errors: list[str] = []
    warnings: list[str] = []

    if raw == "":
        errors.append("name length must be greater than zero")
        return ValidationResult(valid=False, errors=errors)

    if raw.startswith("."):
        errors.append("name cannot start with a period")
    if raw.startswith("_"):
        errors.append("name cannot start with an underscore")
    if raw.strip() != raw:
        errors.append("name cannot contain leading or trailing spaces")
    if raw.lower() in _RESERVED_NAMES:
        errors.append(f"{raw} is a blacklisted name")
    if raw.lower() in _CORE_MODULES:
        errors.append(f"{raw} is a core module name")
    if len(raw) > MAX_NAME_LENGTH:
        errors.append(f"name can no longer contain more than {MAX_NAME_LENGTH} characters")
    if raw.lower() != raw:
        errors.append("name can no longer contain capital letters")
    if " " in raw:
        errors.append("name cannot contain spaces")
    if _SPECIAL_CHARS.search(raw.split("/")[-1]):
        errors.append('name can no longer contain special characters ("~\'!()*")')
    if quote(raw, safe="") != raw:
        errors.append("name can only contain URL-friendly characters")
    if not raw[0].islower() or not raw[0].isascii():
        errors.append("name must start with a lowercase letter")
    disallowed = sorted(set(_DISALLOWED_CHARS.findall(raw)))
    if disallowed:
        errors.append(
            "name can only contain lowercase letters, digits, hyphens and underscores"
            f" (found {' '.join(repr(c) for c in disallowed)})"
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def sanitize_name(raw: str) -> str:
    """Best-effort normalisation of *raw* into a package name.

    Trims, lowercases, collapses whitespace to hyphens and drops anything
    outside ``[a-z0-9_-]``.  The result may be empty, so callers should still
    run :func:`validate_name` on it.

    Examples::

        sanitize_name("My Project!") -> "my-project"
        sanitize_name("  Hello   World ") -> "hello-world"
    """
    result = raw.strip().lower()
    result = re.sub(r"\s+", "-", result)
    return re.sub(r"[^a-z0-9_-]", "", result)


def validate_package_manager(pm: str) -> bool:
    return pm in PACKAGE_MANAGERS


def validate_template(template: str) -> bool:
    return template in TEMPLATES


def validate_port(port: int) -> bool:
    """Return ``True`` if *port* is an unprivileged TCP port (1024-65535)."""
    if isinstance(port, bool) or not isinstance(port, int):
        return False
    return MIN_PORT <= port <= MAX_PORT
