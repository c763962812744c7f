"""Case and Turkish diacritic folding for command matching."""

from __future__ import annotations

# Capital dotted I is folded before lower() so no combining dot (U+0307) survives.
_FOLD = str.maketrans(
    {
        "İ": "i",
        "ı": "i",
        "Ğ": "g",
        "ğ": "g",
        "Ü": "u",
        "ü": "u",
        "Ş": "s",
        "ş": "s",
        "Ö": "o",
        "ö": "o",
        "Ç": "c",
        "ç": "c",
        "\u0307": None,
    }
)


def normalize(text: str) -> str:
    """Lowercase, trim and map Turkish letters to their ASCII base letters.

    ``normalize(normalize(x)) == normalize(x)`` holds for every input.
    """
    return text.translate(_FOLD).lower().translate(_FOLD).strip()
