"""Strudel pattern simplification used as a write fallback.

Strips effect chains, transformations and conditional modifiers from a
pattern while keeping its base expression. Call arguments may hold nested
calls (`.sometimes(x => x.fast(2))`), so every call is removed by scanning
for its balanced closing parenthesis.
"""

import logging

logger = logging.getLogger(__name__)


# Chained calls removed from a pattern, in removal order
EFFECT_CALLS = ("delay", "reverb", "room", "lpf", "hpf", "bpf")
TRANSFORM_CALLS = ("jux", "iter", "chop", "striate", "scramble")
CONDITIONAL_CALLS = ("sometimes", "often", "rarely", "every")
SIMPLIFIABLE_CALLS = EFFECT_CALLS + TRANSFORM_CALLS + CONDITIONAL_CALLS


def find_closing_paren(text: str, start: int) -> int:
    """Find the parenthesis closing a call whose arguments begin at `start`.

    Args:
        text: Text to scan
        start: Index just after the opening parenthesis

    Returns:
        Index of the matching ")" or -1 if the call is unbalanced
    """
    depth = 1
    for index in range(start, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def strip_call(pattern: str, call: str) -> str:
    """Remove every `.call(...)` from a pattern, arguments included."""
    marker = f".{call}("
    search_from = 0

    while True:
        start = pattern.find(marker, search_from)
        if start == -1:
            return pattern

        end = find_closing_paren(pattern, start + len(marker))
        if end == -1:
            # Unbalanced call; leave the rest of the pattern untouched
            logger.debug(f"Unbalanced .{call}( call left in pattern")
            return pattern

        pattern = pattern[:start] + pattern[end + 1:]
        search_from = start


def simplify_pattern(pattern: str) -> str:
    """Simplify a pattern by removing risky chained calls.

    Args:
        pattern: Original Strudel pattern

    Returns:
        Pattern with effects, transformations and conditional modifiers removed

    Example:
        >>> simplify_pattern('s("bd").sometimes(x => x.fast(2)).room(0.8)')
        's("bd")'
    """
    simplified = pattern
    for call in SIMPLIFIABLE_CALLS:
        simplified = strip_call(simplified, call)

    logger.debug(
        f"Pattern simplified: {pattern[:50]!r} -> {simplified[:50]!r}"
    )
    return simplified
