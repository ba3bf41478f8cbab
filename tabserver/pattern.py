"""
Filename pattern tokenizing and matching.

A pattern such as "[artist] - [title] ([tag])" is a flat sequence of literal
text and bracketed variables. Matching walks the tokens left to right over a
filename: literals must match exactly, variables capture greedily up to the
first character of the literal that follows them.
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache


DEFAULT_TITLE = "Untitled"
DEFAULT_ARTIST = "Unnamed"


class PatternError(ValueError):
    """Raised by strict compilation when a pattern has problems."""

    def __init__(self, source: str, problems: list[str]):
        self.source = source
        self.problems = problems
        super().__init__(f"Invalid pattern {source!r}: " + "; ".join(problems))


class TokenKind(Enum):
    LITERAL = "literal"
    VARIABLE = "variable"


class Field(Enum):
    """Where a variable's capture ends up."""

    TITLE = "title"
    ARTIST = "artist"
    TAG = "tag"
    UNRECOGNIZED = None

    @classmethod
    def for_name(cls, name: str) -> "Field":
        for member in (cls.TITLE, cls.ARTIST, cls.TAG):
            if member.value == name:
                return member
        return cls.UNRECOGNIZED


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str

    @classmethod
    def classify(cls, text: str) -> "Token":
        """Build a token, deciding from its text whether it is a variable."""
        if len(text) > 1 and text[0] == "[" and text[-1] == "]":
            return cls(TokenKind.VARIABLE, text)
        return cls(TokenKind.LITERAL, text)

    @property
    def is_variable(self) -> bool:
        return self.kind is TokenKind.VARIABLE

    @property
    def name(self) -> str | None:
        """Interior of a variable token, e.g. "title" for "[title]"."""
        if not self.is_variable:
            return None
        return self.text[1:-1]

    @property
    def field(self) -> Field | None:
        if not self.is_variable:
            return None
        return Field.for_name(self.name)


@dataclass
class ParseResult:
    title: str = DEFAULT_TITLE
    artist: str = DEFAULT_ARTIST
    tags: list[str] = field(default_factory=list)
    matched: bool = True


def tokenize_pattern(pattern: str) -> list[Token]:
    """
    Split a pattern into literal and variable tokens.

    Every "[" starts a new token and every "]" ends one; there is no escaping.
    Empty literals (e.g. before a leading "[") are not emitted, so joining
    the token texts always gives back the original pattern.
    """
    tokens = []
    buffer = ""

    for character in pattern:
        if character == "[":
            if buffer:
                tokens.append(Token.classify(buffer))
            buffer = "["
        elif character == "]":
            buffer += character
            tokens.append(Token.classify(buffer))
            buffer = ""
        else:
            buffer += character

    if buffer:
        tokens.append(Token.classify(buffer))

    return tokens


def _stop_character(tokens, index: int) -> str | None:
    """First character of the literal after tokens[index], if there is one."""
    if index + 1 < len(tokens):
        following = tokens[index + 1]
        if not following.is_variable and following.text:
            return following.text[0]
    return None


def parse_filename(filename: str, tokens) -> ParseResult:
    """
    Extract title, artist and tags from an extension-stripped filename.

    Returns a ParseResult with matched=False as soon as a literal fails to
    match; anything captured before that point is left in place.
    """
    result = ParseResult()
    remaining = filename

    for index, token in enumerate(tokens):
        if not token.is_variable:
            if not remaining.startswith(token.text):
                result.matched = False
                return result
            remaining = remaining[len(token.text):]
            continue

        # Greedy capture up to the stop character (or everything if unset)
        stop = _stop_character(tokens, index)
        end = remaining.find(stop) if stop is not None else -1
        if end < 0:
            end = len(remaining)
        captured, remaining = remaining[:end], remaining[end:]

        target = token.field
        if target is Field.TITLE:
            result.title = captured
        elif target is Field.ARTIST:
            result.artist = captured
        elif target is Field.TAG:
            result.tags.append(captured)
        # Field.UNRECOGNIZED: capture is discarded

    return result


def validate_pattern(source: str) -> list[str]:
    """
    List problems that the permissive tokenizer would silently accept.

    Checks for unbalanced or nested brackets, variables with no literal
    between them (the first one swallows the rest of the filename) and
    variable names that do not map to any field.
    """
    problems = []

    depth = 0
    for position, character in enumerate(source):
        if character == "[":
            if depth:
                problems.append(f"nested '[' at position {position}")
            depth += 1
        elif character == "]":
            if not depth:
                problems.append(f"unmatched ']' at position {position}")
            else:
                depth -= 1
    if depth:
        problems.append("unclosed '['")

    tokens = tokenize_pattern(source)
    for current, following in zip(tokens, tokens[1:]):
        if current.is_variable and following.is_variable:
            problems.append(
                f"{current.text} is directly followed by {following.text} "
                f"and will capture the rest of the filename"
            )

    for token in tokens:
        if token.is_variable and token.field is Field.UNRECOGNIZED:
            problems.append(f"unknown variable {token.text}")

    return problems


@dataclass(frozen=True)
class Pattern:
    """A tokenized filename pattern, safe to share between threads."""

    source: str
    tokens: tuple[Token, ...]

    @classmethod
    def compile(cls, source: str, strict: bool = False) -> "Pattern":
        if strict:
            problems = validate_pattern(source)
            if problems:
                raise PatternError(source, problems)
        return cls(source, tuple(tokenize_pattern(source)))

    @property
    def variables(self) -> list[str]:
        return [token.name for token in self.tokens if token.is_variable]

    def match(self, filename: str) -> ParseResult:
        return parse_filename(filename, self.tokens)


@lru_cache(maxsize=32)
def compile_pattern(source: str) -> Pattern:
    """Compile a pattern once per distinct source string."""
    return Pattern.compile(source)
