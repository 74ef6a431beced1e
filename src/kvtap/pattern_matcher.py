"""
Regular expression search used for highlighting and message selection.
"""

import logging
import re
from typing import AnyStr, List, Union

from .models import ConfigurationError, MatchSpan

logger = logging.getLogger(__name__)


def compile_pattern(pattern: Union[str, bytes], ignore_case: bool = False) -> re.Pattern:
    """
    Compile a user supplied search pattern.

    Raises:
        ConfigurationError: If the pattern is not a valid regular expression
    """
    flags = re.IGNORECASE if ignore_case else 0
    try:
        compiled = re.compile(pattern, flags)
    except re.error as e:
        raise ConfigurationError(f"Invalid search pattern {pattern!r}: {e}") from e
    logger.debug(f"Compiled search pattern {pattern!r} (ignore_case={ignore_case})")
    return compiled


def find_all(text: AnyStr, pattern: Union[AnyStr, re.Pattern]) -> List[MatchSpan]:
    """
    Find all non-overlapping occurrences of pattern in text.

    Empty matches are reported with a length of 0; the scan always moves
    forward past them, so patterns that match the empty string terminate.

    Args:
        text: Text to scan
        pattern: Regular expression, as a string or compiled

    Returns:
        Spans in left-to-right order, empty if nothing matched
    """
    if not isinstance(pattern, re.Pattern):
        pattern = re.compile(pattern)
    return [
        MatchSpan(match.start(), match.end() - match.start())
        for match in pattern.finditer(text)
    ]
