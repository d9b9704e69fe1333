"""Exit-code contract for the command line.

Code  Meaning
----  -------
  0   Valid: no fatal error (lint findings and warnings allowed)
  1   Invalid: version, structural or semantic failure
  2   Error: usage error, unreadable file, bad rule file
"""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    VALID = 0
    INVALID = 1
    ERROR = 2
