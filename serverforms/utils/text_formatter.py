"""
Text Formatter - '&' color codes used in message templates

Templates carry codes like '&a' (green) or '&c' (red). These helpers turn
them into section-sign codes for game clients, ANSI escapes for consoles,
or strip them for plain-text transports.
"""

import re

COLOR_CODE_PATTERN = re.compile(r"&([0-9a-fk-orA-FK-OR])")

# Code -> ANSI escape (obfuscated has no terminal equivalent)
ANSI_CODES = {
    '0': '\033[30m',
    '1': '\033[34m',
    '2': '\033[32m',
    '3': '\033[36m',
    '4': '\033[31m',
    '5': '\033[35m',
    '6': '\033[33m',
    '7': '\033[37m',
    '8': '\033[90m',
    '9': '\033[94m',
    'a': '\033[92m',
    'b': '\033[96m',
    'c': '\033[91m',
    'd': '\033[95m',
    'e': '\033[93m',
    'f': '\033[97m',
    'k': '',
    'l': '\033[1m',
    'm': '\033[9m',
    'n': '\033[4m',
    'o': '\033[3m',
    'r': '\033[0m',
}

ANSI_RESET = '\033[0m'


def format_color(text: str) -> str:
    """
    Convert '&x' codes to section-sign codes.

    Examples:
        >>> format_color("&aDone")
        '§aDone'
    """
    return COLOR_CODE_PATTERN.sub(lambda m: "§" + m.group(1).lower(), text)


def strip_color(text: str) -> str:
    """
    Remove '&x' codes.

    Examples:
        >>> strip_color("&b1: &fAlice")
        '1: Alice'
    """
    return COLOR_CODE_PATTERN.sub("", text)


def to_ansi(text: str) -> str:
    """Convert '&x' codes to ANSI escapes, resetting at the end"""
    converted = COLOR_CODE_PATTERN.sub(lambda m: ANSI_CODES[m.group(1).lower()], text)
    return converted + ANSI_RESET if converted != text else converted
