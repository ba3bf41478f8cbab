"""
Configuration settings for the tab server.
Adjust these values to change where the server listens or where data lives.
Settings edited through the web UI are stored in Redis and override the
defaults below.
"""

from pathlib import Path

# =============================================================================
# SERVER SETTINGS
# =============================================================================

# Address and port to listen on ("" / "0.0.0.0" = all interfaces)
ADDRESS = "0.0.0.0"
PORT = 8000

# Serve over HTTPS when both are set (paths to PEM files)
CERTIFICATE = None
KEY = None

# Static browser UI (index.html, settings.html, js/, css/)
WWW_DIR = Path(__file__).parent / "tabserver" / "www"

# =============================================================================
# REDIS
# =============================================================================

REDIS_URL = "redis://localhost:6379/0"

# =============================================================================
# DEFAULT TAB SETTINGS (used until changed via /settings)
# =============================================================================

# Directory scanned for tab files
DEFAULT_TAB_DIRECTORY = "tabs"

# How song metadata is encoded in filenames (extension is stripped first)
DEFAULT_FILENAME_PATTERN = "[artist]-[title]"

# Words left lowercase when capitalising titles and artists
DEFAULT_NON_CAPITAL_WORDS = ["a", "an", "and", "of", "the", "to", "in", "on"]

# Characters replaced by spaces in titles and artists
DEFAULT_CHARACTERS_TO_REMOVE = "_"

# =============================================================================
# LOGGING
# =============================================================================

LOG_DIR = "logs"
