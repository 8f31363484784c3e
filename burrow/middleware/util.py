"""Helpers for comparing origins against scheme and wildcard patterns."""

from __future__ import annotations

_MAX_AUTHORITY_LEN = 253


def match_scheme(domain: str, pattern: str) -> bool:
    """Return True if domain and pattern share the part before their first colon."""
    didx = domain.find(":")
    pidx = pattern.find(":")
    return didx != -1 and pidx != -1 and domain[:didx] == pattern[:pidx]


def match_subdomain(domain: str, pattern: str) -> bool:
    """Return True if domain matches a pattern such as ``http://*.example.com``."""
    if not match_scheme(domain, pattern):
        return False
    didx = domain.find("://")
    pidx = pattern.find("://")
    if didx == -1 or pidx == -1:
        return False
    dom_auth = domain[didx + 3:]
    if len(dom_auth) > _MAX_AUTHORITY_LEN:
        return False
    pat_auth = pattern[pidx + 3:]

    dom_parts = dom_auth.split(".")[::-1]
    pat_parts = pattern_parts = pat_auth.split(".")[::-1]
    for position, part in enumerate(dom_parts):
        if position >= len(pattern_parts):
            return False
        expected = pat_parts[position]
        if expected == "*":
            return True
        if expected != part:
            return False
    return False