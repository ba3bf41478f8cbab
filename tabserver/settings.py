"""
Settings persisted in Redis, and the admin password.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field

import redis

import config
from .errors import PasswordNotSetError, WrongPasswordError
from .pattern import Pattern, compile_pattern

logger = logging.getLogger(__name__)

PASSWORD_HASH_KEY = "password-hash"
TAB_DIRECTORY_KEY = "tab-directory"
FILENAME_PATTERN_KEY = "filename-pattern"
NON_CAPITAL_WORDS_KEY = "non-capital-words"
CHARACTERS_TO_REMOVE_KEY = "characters-to-remove"


@dataclass
class Settings:
    tab_directory: str = config.DEFAULT_TAB_DIRECTORY
    filename_pattern: str = config.DEFAULT_FILENAME_PATTERN
    non_capital_words: list[str] = field(
        default_factory=lambda: list(config.DEFAULT_NON_CAPITAL_WORDS)
    )
    characters_to_remove: str = config.DEFAULT_CHARACTERS_TO_REMOVE
    password_hash: str = ""

    @property
    def pattern(self) -> Pattern:
        return compile_pattern(self.filename_pattern)

    def to_public_dict(self) -> dict:
        """Settings as served to the browser, without the password hash."""
        return {
            TAB_DIRECTORY_KEY: self.tab_directory,
            FILENAME_PATTERN_KEY: self.filename_pattern,
            NON_CAPITAL_WORDS_KEY: list(self.non_capital_words),
            CHARACTERS_TO_REMOVE_KEY: self.characters_to_remove,
        }


def load_settings(client: redis.Redis) -> Settings:
    """Read settings from Redis, using defaults for anything never saved."""
    defaults = Settings()

    tab_directory, pattern, characters, password_hash = client.mget(
        TAB_DIRECTORY_KEY, FILENAME_PATTERN_KEY, CHARACTERS_TO_REMOVE_KEY, PASSWORD_HASH_KEY,
    )

    # An empty word list is stored as a missing set, so only fall back to the
    # defaults when settings were never saved at all
    if tab_directory is not None:
        words = sorted(client.smembers(NON_CAPITAL_WORDS_KEY))
    else:
        words = defaults.non_capital_words

    return Settings(
        tab_directory=tab_directory if tab_directory is not None else defaults.tab_directory,
        filename_pattern=pattern if pattern is not None else defaults.filename_pattern,
        non_capital_words=words,
        characters_to_remove=characters if characters is not None else defaults.characters_to_remove,
        password_hash=password_hash or "",
    )


def save_settings(client: redis.Redis, settings: Settings):
    """Persist everything except the password hash in one transaction."""
    pipe = client.pipeline()
    pipe.mset({
        TAB_DIRECTORY_KEY: settings.tab_directory,
        FILENAME_PATTERN_KEY: settings.filename_pattern,
        CHARACTERS_TO_REMOVE_KEY: settings.characters_to_remove,
    })
    pipe.delete(NON_CAPITAL_WORDS_KEY)
    if settings.non_capital_words:
        pipe.sadd(NON_CAPITAL_WORDS_KEY, *settings.non_capital_words)
    pipe.execute()

    logger.info(
        f"Settings saved: directory={settings.tab_directory!r} "
        f"pattern={settings.filename_pattern!r}"
    )


def hash_password(password: str) -> str:
    """Hex SHA-512 digest, the format stored under password-hash."""
    return hashlib.sha512(password.encode("utf-8")).hexdigest()


def check_password(settings: Settings, entered: str):
    """Raise unless `entered` matches the stored admin password."""
    if not settings.password_hash:
        raise PasswordNotSetError()

    if not hmac.compare_digest(hash_password(entered or ""), settings.password_hash):
        raise WrongPasswordError()


def set_password(client: redis.Redis, settings: Settings, new_password: str):
    settings.password_hash = hash_password(new_password)
    client.set(PASSWORD_HASH_KEY, settings.password_hash)
    logger.info("Admin password changed")


def change_password(client: redis.Redis, settings: Settings, old_password: str, new_password: str):
    check_password(settings, old_password)
    set_password(client, settings, new_password)
