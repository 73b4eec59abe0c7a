"""
Observed output file reader.

One unsigned integer per line. Values may carry a base prefix (0x / 0o / 0b,
or a bare leading 0 for octal); anything after the number is ignored.
Blank and unparseable lines are skipped. Values are truncated to 32 bits.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

_NUMBER = re.compile(
    r"""^\s*(?P<sign>[+-]?)(?:
        0[xX](?P<hex>[0-9a-fA-F]+)
      | 0[oO](?P<oct>[0-7]+)
      | 0[bB](?P<bin>[01]+)
      | (?P<legacy_oct>0[0-7]*)
      | (?P<dec>[1-9][0-9]*)
    )""",
    re.VERBOSE,
)


def parse_value(text: str) -> Optional[int]:
    """Parse one line into a 32-bit value, or None when no number leads it."""
    match = _NUMBER.match(text)
    if match is None:
        return None
    if match.group('hex') is not None:
        value = int(match.group('hex'), 16)
    elif match.group('oct') is not None:
        value = int(match.group('oct'), 8)
    elif match.group('bin') is not None:
        value = int(match.group('bin'), 2)
    elif match.group('legacy_oct') is not None:
        value = int(match.group('legacy_oct'), 8)
    else:
        value = int(match.group('dec'))
    if match.group('sign') == '-':
        value = -value
    return value & 0xFFFFFFFF


def parse_lines(lines: Iterable[str]) -> List[int]:
    values = []
    for line_no, line in enumerate(lines, 1):
        if not line.strip():
            continue
        value = parse_value(line)
        if value is None:
            logger.debug("Skipping unparseable line %d: %r", line_no, line.rstrip('\n'))
            continue
        values.append(value)
    return values


def read_observed_outputs(path: Union[str, Path]) -> List[int]:
    """
    Read observed outputs from `path`.

    Raises FileNotFoundError if the file does not exist.
    """
    with open(path, 'r') as f:
        values = parse_lines(f)
    logger.info("Loaded %d observed output(s) from %s", len(values), path)
    return values
