"""
L1 Domain — Version constraint validation (pure).

Checks an installed version against a Cargo-style requirement string
such as ``">=2.24"``, ``"^2.18"``, ``"~2.24.1"`` or ``">=2.20, <3"``.
A bare version (``"2.24"``) means ``^2.24``. No I/O, no subprocess.
"""

from __future__ import annotations

import re

_CLAUSE_RE = re.compile(r"^\s*(>=|<=|>|<|=|\^|~)?\s*v?(\d+(?:\.\d+){0,2})\s*$")


def _parse_semver(v: str) -> tuple[int, int, int]:
    parts = [int(x) for x in v.strip().lstrip("v").split("-")[0].split(".")[:3]]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def parse_constraint(constraint: str) -> list[tuple[str, tuple[int, int, int], int]]:
    """Split a requirement into ``(op, version, precision)`` clauses.

    ``precision`` is how many components were written (1–3); caret
    and tilde ranges depend on it.

    Raises:
        ValueError: If any clause is malformed.
    """
    clauses = []
    for raw in constraint.split(","):
        m = _CLAUSE_RE.match(raw)
        if not m:
            raise ValueError(f"Invalid version requirement: '{raw.strip()}'")
        op = m.group(1) or "^"
        version = m.group(2)
        clauses.append((op, _parse_semver(version), version.count(".") + 1))
    return clauses


def _upper_bound(op: str, ref: tuple[int, int, int], precision: int) -> tuple[int, int, int]:
    major, minor, patch = ref
    if op == "~":
        if precision == 1:
            return (major + 1, 0, 0)
        return (major, minor + 1, 0)
    # caret: bump the left-most non-zero written component
    if major > 0 or precision == 1:
        return (major + 1, 0, 0)
    if minor > 0 or precision == 2:
        return (0, minor + 1, 0)
    return (0, 0, patch + 1)


def _clause_matches(sel: tuple[int, int, int], op: str, ref: tuple[int, int, int], precision: int) -> bool:
    if op == ">=":
        return sel >= ref
    if op == ">":
        return sel > ref
    if op == "<=":
        return sel <= ref
    if op == "<":
        return sel < ref
    if op == "=":
        return sel[:precision] == ref[:precision]
    return ref <= sel < _upper_bound(op, ref, precision)


def check_version_constraint(installed_version: str, constraint: str) -> dict:
    """Validate ``installed_version`` against ``constraint``.

    Returns:
        ``{"valid": True}`` or ``{"valid": False, "message": "..."}``.
        An unparseable installed version is reported as valid with
        ``parse_error`` set, so odd version banners never block a user.

    Raises:
        ValueError: If ``constraint`` itself is malformed.
    """
    clauses = parse_constraint(constraint)

    try:
        sel = _parse_semver(installed_version)
    except ValueError:
        return {"valid": True, "parse_error": True}

    for op, ref, precision in clauses:
        if not _clause_matches(sel, op, ref, precision):
            return {
                "valid": False,
                "message": f"Version {installed_version} does not satisfy {constraint.strip()}",
            }
    return {"valid": True}
