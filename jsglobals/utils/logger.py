"""Terminal-safe output helpers.

Detects whether the terminal can render UTF-8 and swaps the status icons the
CLI prints for ASCII stand-ins when it cannot.
"""
import locale
import sys
from typing import Callable


ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '•': '*',
    '…': '...',
    '🌐': '[global]',
    '📄': '[file]',
}

UTF8_ENCODINGS = ('utf-8', 'utf8', 'utf_8')


def detect_terminal_encoding() -> str:
    """Return the lower-cased encoding of stdout, the locale, or 'ascii'."""
    encoding = getattr(sys.stdout, 'encoding', None)
    if encoding:
        return encoding.lower()
    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding() in UTF8_ENCODINGS


def sanitize_for_terminal(text: str, force: bool = False) -> str:
    """Replace status icons with ASCII when the terminal is not UTF-8.

    Args:
        text: Text potentially containing icons from ICON_MAP
        force: Sanitize regardless of the detected encoding

    Returns:
        str: Text safe for the current terminal
    """
    if not force and is_utf8_capable():
        return text
    for icon, replacement in ICON_MAP.items():
        text = text.replace(icon, replacement)
    return text


def create_safe_print() -> Callable:
    """Create a print function that sanitizes string arguments."""
    def safe_print(*args, **kwargs):
        print(*(sanitize_for_terminal(arg) if isinstance(arg, str) else arg for arg in args), **kwargs)

    return safe_print


safe_print = create_safe_print()
