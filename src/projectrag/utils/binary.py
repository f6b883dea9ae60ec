"""Binary content detection utilities."""

import re

# Control characters other than tab/LF/CR, plus the decoder's replacement char
_NON_PRINTABLE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\ufffd]")


def has_null_bytes(content: bytes, max_ratio: float = 0.05) -> bool:
    """Check raw bytes for a high share of NUL bytes.

    Args:
        content: Raw file content
        max_ratio: Share of NUL bytes above which content is binary

    Returns:
        True if NUL bytes exceed the allowed ratio
    """
    if not content:
        return False
    return content.count(b"\x00") > len(content) * max_ratio


def is_binary_content(content: str, sample_size: int = 8192) -> bool:
    """Detect if decoded content is binary.

    Any NUL character is a strong binary indicator. Otherwise the first
    sample_size characters are checked for non-printable characters.

    Args:
        content: Decoded file content
        sample_size: Number of characters to sample from the start

    Returns:
        True if content appears to be binary
    """
    if not content:
        return False

    if "\x00" in content:
        return True

    sample = content[:sample_size]
    non_printable = len(_NON_PRINTABLE.findall(sample))

    # More than 5% non-printable: treat as binary
    return non_printable > len(sample) * 0.05
