"""Ordinal number formatting."""


def ordinal(x: int, lang: str) -> str:
    """Return ``x`` with its English ordinal suffix; Chinese has none."""
    s = str(x)
    if lang == "zh":
        return s

    suffix = "th"
    # Negative numbers never carry st/nd/rd, since their remainder is not positive.
    if x > 0:
        last, last_two = x % 10, x % 100
        if last == 1 and last_two != 11:
            suffix = "st"
        elif last == 2 and last_two != 12:
            suffix = "nd"
        elif last == 3 and last_two != 13:
            suffix = "rd"
    return s + suffix