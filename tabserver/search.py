"""
Filtering and sorting of tab listings.
"""

from .chords import extract_chords

SORT_OPTIONS = {
    "title-asc": ("title", False),
    "title-desc": ("title", True),
    "artist-asc": ("artist", False),
    "artist-desc": ("artist", True),
}


def matches_term(tab, term: str) -> bool:
    """Every word of the search term must appear in the title or the artist."""
    title = tab.title.lower()
    artist = tab.artist.lower()

    return all(
        word in title or word in artist
        for word in term.lower().split()
    )


def filter_tabs(tabs: list, term: str = None) -> list:
    """
    Filter tabs by a free-text search term (case-insensitive, AND of words).

    An empty or missing term keeps every tab.
    """
    if not term or not term.strip():
        return list(tabs)
    return [tab for tab in tabs if matches_term(tab, term)]


def sort_tabs(tabs: list, option: str = None) -> list:
    """Sort by one of SORT_OPTIONS; unknown options leave the order as is."""
    if option not in SORT_OPTIONS:
        return list(tabs)

    attribute, reverse = SORT_OPTIONS[option]
    return sorted(tabs, key=lambda tab: getattr(tab, attribute).lower(), reverse=reverse)


def format_result(tab, show_chords: bool = False) -> str:
    """Format a tab for display on the command line."""
    line = f"[{tab.id}] {tab.artist} - {tab.title}"

    if tab.tags:
        line += f" ({', '.join(tab.tags)})"

    if show_chords:
        chords = extract_chords(tab.content)
        if chords:
            chords_str = ", ".join(chords[:8])
            if len(chords) > 8:
                chords_str += "..."
            line += f"\n    Chords: {chords_str}"

    return line
