"""
Chord extraction from tab content.

Used to list the chords of a tab and to decide which lines the browser
highlights as chord lines.
"""

import re


# Chord pattern: matches chords like A, Am, A7, Amaj7, A#dim, Bb, Csus4, D/F#, etc.
CHORD_PATTERN = re.compile(
    r'[A-G][#b]?'                       # Root note (A-G with optional sharp/flat)
    r'(?:maj|min|m|M|dim|aug|sus|add)?'  # Quality
    r'(?:[0-9]+)?'                       # Extension (7, 9, 11, 13)
    r'(?:sus[24])?'                      # Suspended
    r'(?:add[0-9]+)?'                    # Added tone
    r'(?:/[A-G][#b]?)?'                  # Bass note (slash chord)
)

MAX_CHORD_LENGTH = 10


def is_chord(token: str) -> bool:
    return len(token) <= MAX_CHORD_LENGTH and CHORD_PATTERN.fullmatch(token) is not None


def is_chord_line(line: str) -> bool:
    """A line is a chord line if it is non-empty and every token is a chord."""
    words = line.split()
    return bool(words) and all(is_chord(w) for w in words)


def extract_chords(content: str) -> list[str]:
    """
    Extract unique chords from chord lines, in the order they first appear.

    Only chord lines are considered, so words like "A" in lyrics are not
    mistaken for chords.
    """
    chords = []
    seen = set()

    for line in content.split("\n"):
        if not is_chord_line(line):
            continue
        for chord in line.split():
            if chord not in seen:
                seen.add(chord)
                chords.append(chord)

    return chords


def is_minor_chord(chord: str) -> bool:
    """Check whether a chord name is minor (Am, F#m7, Amin, Am/G)."""
    chord = chord.split("/")[0]
    match = re.match(r'^[A-G][#b]?(.*)$', chord)
    if not match:
        return False

    quality = match.group(1)
    if quality.startswith(("maj", "M")):
        return False
    return quality.startswith("m")


def detect_key(content: str, chords: list[str] = None) -> str | None:
    """
    Guess the key of a tab: the first chord in the document.

    Returns e.g. "Em" or "G", or None if there are no chords.
    """
    if chords is None:
        chords = extract_chords(content)
    if not chords:
        return None

    first_chord = chords[0]
    match = re.match(r'^([A-G][#b]?)', first_chord)
    if not match:
        return None

    root = match.group(1)
    if is_minor_chord(first_chord):
        return root + "m"
    return root
