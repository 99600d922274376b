"""Placeholder substitution for downloaded template files."""

import re
from collections.abc import Mapping


def _placeholder_pattern(keys: list[str]) -> re.Pattern[str]:
    # Longest first so a key never shadows another key it prefixes.
    alternatives = "|".join(re.escape(k) for k in sorted(keys, key=len, reverse=True))
    return re.compile(r"\{\{(" + alternatives + r")\}\}", re.MULTILINE)


def render(text: str, context: Mapping[str, str]) -> str:
    """
    Replace every ``{{key}}`` in text with its value from context.

    All placeholders are substituted in a single pass, so inserted values
    are never scanned again and the order of keys does not matter.
    Placeholders without a matching key are left as they are.

    Args:
        text: Template text
        context: Placeholder name to replacement value

    Returns:
        Rendered text
    """
    if not context:
        return text

    pattern = _placeholder_pattern(list(context))
    return pattern.sub(lambda m: context[m.group(1)], text)
