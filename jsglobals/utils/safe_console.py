"""Rich Console that degrades to ASCII icons on non-UTF-8 terminals."""
from typing import Any
from rich.console import Console
from rich.markup import escape
from .logger import ICON_MAP, is_utf8_capable


def sanitize_markup(text: str, force: bool = False) -> str:
    """Replace icons with ASCII stand-ins escaped so Rich prints them literally."""
    if not force and is_utf8_capable():
        return text
    for icon, replacement in ICON_MAP.items():
        text = text.replace(icon, escape(replacement))
    return text


class SafeConsole(Console):
    """Console whose print() sanitizes status icons when the terminal can't render them.

    All constructor arguments are passed through to Rich's Console.
    """

    def __init__(self, *args, **kwargs):
        self._needs_sanitization = not is_utf8_capable()
        if self._needs_sanitization:
            kwargs.setdefault('legacy_windows', True)
        super().__init__(*args, **kwargs)

    def print(self, *objects: Any, **kwargs) -> None:
        if self._needs_sanitization:
            # replacements like [OK] would otherwise be read as markup tags
            objects = tuple(sanitize_markup(obj, force=True) if isinstance(obj, str) else obj for obj in objects)
        super().print(*objects, **kwargs)
