"""Terminal-safe text output with ASCII fallbacks for status glyphs.

Detects whether the terminal can encode UTF-8 and, if not, replaces the
Unicode glyphs ssr-guard prints with plain ASCII equivalents.
"""
import sys
import locale


# Unicode to ASCII glyph mapping for non-UTF-8 terminals
ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '•': '*',
    '…': '...',
    '─': '-',
    '│': '|',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 characters."""
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode glyphs with ASCII equivalents if the terminal needs it.

    Args:
        text: Text potentially containing Unicode glyphs

    Returns:
        str: Text safe for the current terminal
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text
