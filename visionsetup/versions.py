"""Version comparison utilities."""

import re


def extract_version_number(version_str: str) -> str:
    """Extract version number from version string."""
    if not version_str:
        return ""

    # Look for version patterns like v1.2.3, 1.2.3, or version numbers in parentheses
    patterns = [
        r"v?(\d+\.\d+\.\d+(?:\.\d+)?)",  # v1.2.3 or 1.2.3
        r"v?(\d+\.\d+(?:\.\d+)?)",  # v1.2 or 1.2
        r"v?(\d+)",  # v1 or 1
    ]

    for pattern in patterns:
        match = re.search(pattern, version_str)
        if match:
            return match.group(1)

    # If no version found, return empty string to avoid comparing "Unknown" vs "1.2.3"
    return ""


def _component_value(component: str) -> int:
    # "0-rc1" -> 0, "beta" -> 0
    match = re.match(r"\d+", component.strip())
    return int(match.group(0)) if match else 0


def version_parts(version: str) -> tuple[int, ...]:
    """Split a dotted version into integers, numeric prefix of each part only."""
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    if not version:
        return ()
    return tuple(_component_value(part) for part in version.split("."))


def compare_versions(version1: str, version2: str) -> int:
    """Compare two version strings. Returns -1, 0, or 1.

    Components are compared left to right; a missing trailing component
    counts as zero, so "1.0" and "1.0.0" are equal.
    """
    v1 = version_parts(version1)
    v2 = version_parts(version2)
    width = max(len(v1), len(v2))
    v1 = v1 + (0,) * (width - len(v1))
    v2 = v2 + (0,) * (width - len(v2))

    if v1 < v2:
        return -1
    elif v1 > v2:
        return 1
    else:
        return 0


def version_gte(version: str, minimum: str) -> bool:
    """Return True if ``version`` is at least ``minimum``.

    Examples:
        >>> version_gte("2", "1.9.9")
        True
        >>> version_gte("20.10", "20.9")
        True
        >>> version_gte("27.5.0-rc1", "27.5")
        True
    """
    return compare_versions(version, minimum) >= 0


__all__ = [
    "extract_version_number",
    "version_parts",
    "compare_versions",
    "version_gte",
]
