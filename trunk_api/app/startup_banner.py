"""
Startup banner for the Trunk API server.

Prints the environment, URL, and the endpoint list, including each
flag-gated capability that was mounted at boot.
"""

from typing import Dict, List, Optional

VERSION = "1.0.0"

# ANSI color codes
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_WHITE = "\033[97m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"

CORE_ENDPOINTS = [
    "GET  /api/health",
    "GET  /api/feature-flags",
    "POST /api/feature-flags/reload",
    "GET  /api/tasks",
    "POST /api/tasks",
]


def build_banner_lines(
    *,
    environment: str,
    port: int,
    mounted: Dict[str, str],
    labels: Optional[Dict[str, str]] = None,
) -> List[str]:
    """Plain-text banner lines (no color); used by print_startup_banner and tests"""
    labels = labels or {}
    lines = [
        "Trunk-Based Development Demo API",
        f"Version    : {VERSION}",
        f"Environment: {environment.upper()}",
        f"URL        : http://localhost:{port}",
        "",
        "Endpoints:",
    ]
    lines.extend(f"  - {endpoint}" for endpoint in CORE_ENDPOINTS)
    for flag_name in sorted(mounted):
        label = labels.get(flag_name) or flag_name
        lines.append(f"  - {mounted[flag_name]}/* ({label}) ✓")
    lines.append("")
    lines.append(f"To change features: edit the manifest for '{environment}', then POST /api/feature-flags/reload")
    return lines


def print_startup_banner(
    *,
    environment: str,
    port: int,
    mounted: Dict[str, str],
    labels: Optional[Dict[str, str]] = None,
):
    """Print the startup banner to stdout."""
    lines = build_banner_lines(environment=environment, port=port, mounted=mounted, labels=labels)
    title, rest = lines[0], lines[1:]
    colored = [f"  {_BOLD}{_WHITE}{title}{_RESET}"]
    for line in rest:
        if line.endswith("✓"):
            colored.append(f"  {_GREEN}{line}{_RESET}")
        elif line.startswith("To change"):
            colored.append(f"  {_DIM}{line}{_RESET}")
        elif ":" in line and not line.startswith("  -"):
            key, _, value = line.partition(":")
            colored.append(f"  {_CYAN}{key}:{_RESET}{value}")
        else:
            colored.append(f"  {line}")
    print("\n".join(["", *colored, ""]), flush=True)
