import logging
import re
from typing import Dict


class CommandArgParser:
    """Extract key="value" pairs from free text for structured admin commands"""

    PAIR_PATTERN = re.compile(r'(\w+)="([^"]+)"')

    @classmethod
    def parse_args(cls, text: str) -> Dict[str, str]:
        """
        Scan left to right for identifier="value" pairs.
        Prose around the pairs is ignored; a repeated key keeps its last value.
        """
        args: Dict[str, str] = {}
        if not text:
            return args

        for match in cls.PAIR_PATTERN.finditer(text):
            key, value = match.groups()
            args[key] = value

        logging.debug("Parsed %s argument(s) from '%s': %s", len(args), text, sorted(args))
        return args


def parse_args(text: str) -> Dict[str, str]:
    return CommandArgParser.parse_args(text)
