"""Tokenizer for compound identifier cells.

The portal packs department, course number and section into one cell, e.g.
``"CSCI 132 - 001"``. This module splits such text into its maximal runs of
ASCII letters and digits.
"""


def _is_alphanumeric(char: str) -> bool:
    return char.isascii() and char.isalnum()


def alphanumeric_runs(text: str) -> list[str]:
    """Extract every maximal run of ASCII letters and digits from text.

    Args:
        text: The text to scan.

    Returns:
        The runs in order of appearance. Empty if text has none.

    Example::

        >>> alphanumeric_runs("  CS-101 / A ")
        ['CS', '101', 'A']
    """
    runs: list[str] = []
    start: int | None = None

    for index, char in enumerate(text):
        if _is_alphanumeric(char):
            if start is None:
                start = index
        elif start is not None:
            runs.append(text[start:index])
            start = None

    if start is not None:
        runs.append(text[start:])

    return runs
