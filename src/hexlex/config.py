"""
hexscan Configuration
=====================

Defaults for the command-line tool. Configuration can come from:
- Default values (defined here)
- Environment variables
- Command-line options (which override both)

Environment Variables
---------------------
    HEXSCAN_FORMAT       Record format: auto, srec or ihex
    HEXSCAN_MAX_ISSUES   Stop collecting issues per file after this many
    HEXSCAN_COLOR        Colour output of `hexscan show` (1/0, true/false,
                         yes/no, on/off)

Invalid values are ignored with a warning and the default is kept.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)

FORMAT_CHOICES = ("auto", "srec", "ihex")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class ScanConfig:
    """
    Configuration for scanning record files.

    Attributes:
        default_format: Format used when none is given ("auto" detects it
            from the file extension, then from the first record)
        max_issues: Maximum issues collected per file (default: 100)
        color: Colour the output of `hexscan show` (default: True)
    """

    default_format: str = "auto"
    max_issues: int = 100
    color: bool = True

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "ScanConfig":
        """
        Create a ScanConfig from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (for tests)

        Returns:
            ScanConfig with values from the environment
        """
        env = os.environ if environ is None else environ
        config = cls()

        if fmt := env.get("HEXSCAN_FORMAT"):
            if fmt.lower() in FORMAT_CHOICES:
                config.default_format = fmt.lower()
            else:
                logger.warning(f"Ignoring HEXSCAN_FORMAT={fmt!r}: not one of {', '.join(FORMAT_CHOICES)}")

        if max_issues := env.get("HEXSCAN_MAX_ISSUES"):
            try:
                value = int(max_issues)
            except ValueError:
                logger.warning(f"Ignoring HEXSCAN_MAX_ISSUES={max_issues!r}: not an integer")
            else:
                if value > 0:
                    config.max_issues = value
                else:
                    logger.warning(f"Ignoring HEXSCAN_MAX_ISSUES={max_issues!r}: must be positive")

        if color := env.get("HEXSCAN_COLOR"):
            if color.lower() in _TRUE_VALUES:
                config.color = True
            elif color.lower() in _FALSE_VALUES:
                config.color = False
            else:
                logger.warning(f"Ignoring HEXSCAN_COLOR={color!r}")

        return config
