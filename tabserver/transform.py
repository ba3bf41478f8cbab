"""
Display transformations applied to tab titles and artists.
"""

from dataclasses import replace


def remove_characters(text: str, characters: str) -> str:
    """Replace every occurrence of each character in `characters` by a space."""
    for character in characters:
        text = text.replace(character, " ")
    return text


def capitalise_word(word: str) -> str:
    # Only the first letter changes, "McCartney" stays "McCartney"
    return word[:1].upper() + word[1:]


def capitalise(text: str, non_capital_words: list[str]) -> str:
    """
    Capitalise each word of `text`, except words listed in `non_capital_words`.

    The first word is always capitalised. Whitespace runs collapse to single
    spaces.
    """
    lowered = {w.lower() for w in non_capital_words}
    words = []

    for index, word in enumerate(text.split()):
        if index == 0 or word.lower() not in lowered:
            words.append(capitalise_word(word))
        else:
            words.append(word)

    return " ".join(words)


def apply_transformations(tab, characters_to_remove: str, non_capital_words: list[str]):
    """Return a copy of the tab with its title and artist cleaned up for display."""
    title = capitalise(remove_characters(tab.title, characters_to_remove), non_capital_words)
    artist = capitalise(remove_characters(tab.artist, characters_to_remove), non_capital_words)
    return replace(tab, title=title, artist=artist, tags=list(tab.tags))
