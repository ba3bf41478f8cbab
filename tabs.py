#!/usr/bin/env python3
"""
Guitar Tab Server

Catalogue a directory of guitar tab files by their filenames and browse
them in the browser. Song metadata comes from a filename pattern such as
"[artist] - [title] ([tag])".

Usage:
    python tabs.py serve [--port 8000]
    python tabs.py list [--search X] [--sort artist-asc]
    python tabs.py parse "[artist]-[title]" "pink_floyd-time.txt"
    python tabs.py settings --pattern "[artist] - [title] ([tag])"
    python tabs.py set-password
    python tabs.py reset-cache
    python tabs.py delete 12
"""

import argparse
import getpass
import logging
import sys
from datetime import datetime
from pathlib import Path

import redis

import config
from tabserver import catalog
from tabserver import search
from tabserver.cache import TabCache
from tabserver.errors import TabServerError
from tabserver.pattern import Pattern, PatternError, validate_pattern
from tabserver.settings import load_settings, save_settings, set_password

logger = logging.getLogger("tabs")


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(verbose: bool = False):
    """Configure logging to both file and console."""
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d")
    log_file = log_dir / f"tabs_{timestamp}.log"

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler(sys.stdout),
        ],
    )


def connect(args) -> redis.Redis:
    """Open the Redis connection given by --redis-url."""
    return redis.Redis.from_url(args.redis_url, decode_responses=True)


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_serve(args):
    """Run the web server."""
    from tabserver.server import create_app

    client = connect(args)
    client.ping()

    app = create_app(client, www_dir=args.www)

    ssl_context = None
    if args.cert and args.key:
        ssl_context = (args.cert, args.key)

    scheme = "https" if ssl_context else "http"
    logger.info(f"Server is running at {scheme}://{args.host}:{args.port}...")
    app.run(host=args.host, port=args.port, ssl_context=ssl_context)


def cmd_list(args):
    """List tabs, scanning the tab directory for new files first."""
    client = connect(args)
    settings = load_settings(client)

    tabs = catalog.get_tabs(TabCache(client), settings)
    tabs = search.filter_tabs(tabs, args.search)
    tabs = search.sort_tabs(tabs, args.sort)

    if not tabs:
        print("No tabs found.")
        return

    print(f"\nTabs ({len(tabs)} found):\n")
    for tab in tabs:
        print(f"  {search.format_result(tab, show_chords=args.show_chords)}")


def cmd_parse(args):
    """Try a filename pattern against filenames without touching the cache."""
    try:
        pattern = Pattern.compile(args.pattern, strict=args.strict)
    except PatternError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not args.strict:
        for problem in validate_pattern(args.pattern):
            print(f"Warning: {problem}")

    print(f"Tokens: {[token.text for token in pattern.tokens]}")
    print(f"Variables: {', '.join(pattern.variables) or '(none)'}")

    for filename in args.filenames:
        result = pattern.match(catalog.strip_extension(filename))
        if not result.matched:
            print(f"  {filename}: no match")
            continue

        line = f"  {filename}: artist={result.artist!r} title={result.title!r}"
        if result.tags:
            line += f" tags={result.tags!r}"
        print(line)


def cmd_settings(args):
    """Show settings, or change the ones given on the command line."""
    client = connect(args)
    settings = load_settings(client)

    changed = False
    if args.directory is not None:
        settings.tab_directory = args.directory
        changed = True
    if args.pattern is not None:
        settings.filename_pattern = args.pattern
        changed = True
    if args.non_capital_words is not None:
        settings.non_capital_words = [w.strip() for w in args.non_capital_words.split(",") if w.strip()]
        changed = True
    if args.remove_characters is not None:
        settings.characters_to_remove = args.remove_characters
        changed = True

    if changed:
        save_settings(client, settings)
        for problem in validate_pattern(settings.filename_pattern):
            print(f"Warning: {problem}")

    print(f"Tab directory:        {settings.tab_directory}")
    print(f"Filename pattern:     {settings.filename_pattern}")
    print(f"Non-capital words:    {', '.join(settings.non_capital_words)}")
    print(f"Characters to remove: {settings.characters_to_remove!r}")
    print(f"Admin password:       {'set' if settings.password_hash else 'not set'}")


def cmd_set_password(args):
    """Set the admin password used by the web UI."""
    password = args.password
    if password is None:
        password = getpass.getpass("New admin password: ")
        if password != getpass.getpass("Repeat password: "):
            print("Error: passwords do not match")
            sys.exit(1)

    if not password:
        print("Error: password must not be empty")
        sys.exit(1)

    client = connect(args)
    set_password(client, load_settings(client), password)
    print("Password set.")


def cmd_reset_cache(args):
    """Forget all cached tabs; they are re-parsed on the next listing."""
    dropped = TabCache(connect(args)).reset()
    print(f"Cache reset ({dropped} tabs dropped).")


def cmd_delete(args):
    """Delete a tab from the cache and remove its file."""
    client = connect(args)
    tab = catalog.delete_tab(TabCache(client), load_settings(client), args.id)
    print(f"Deleted {tab.filename}")


# =============================================================================
# MAIN
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser_main = argparse.ArgumentParser(
        description="Guitar Tab Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  serve        Run the web UI and JSON API
  list         List tabs (parses and caches new files)
  parse        Test a filename pattern against some filenames
  settings     Show or change settings
  set-password Set the admin password
  reset-cache  Forget all cached tabs
  delete       Delete a tab and its file

Examples:
  python tabs.py serve --port 8080
  python tabs.py list --search "floyd" --sort title-asc
  python tabs.py parse "[artist] - [title] ([tag])" "Oasis - Wonderwall (acoustic).txt"
  python tabs.py settings --directory ~/tabs --pattern "[artist] - [title]"
        """,
    )
    parser_main.add_argument("--redis-url", default=config.REDIS_URL,
                             help=f"Redis connection URL (default: {config.REDIS_URL})")
    parser_main.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser_main.add_subparsers(dest="command", help="Command to run")

    # serve command
    p_serve = subparsers.add_parser("serve", help="Run the web server")
    p_serve.add_argument("--host", default=config.ADDRESS, help="Address to listen on")
    p_serve.add_argument("--port", "-p", type=int, default=config.PORT, help="Port to listen on")
    p_serve.add_argument("--cert", default=config.CERTIFICATE, help="TLS certificate (PEM)")
    p_serve.add_argument("--key", default=config.KEY, help="TLS private key (PEM)")
    p_serve.add_argument("--www", default=None, help="Directory with the browser UI files")
    p_serve.set_defaults(func=cmd_serve)

    # list command
    p_list = subparsers.add_parser("list", help="List tabs")
    p_list.add_argument("--search", "-s", help="Only tabs whose title/artist contain these words")
    p_list.add_argument("--sort", choices=sorted(search.SORT_OPTIONS), help="Sort order")
    p_list.add_argument("--show-chords", action="store_true", help="Show chords in results")
    p_list.set_defaults(func=cmd_list)

    # parse command
    p_parse = subparsers.add_parser("parse", help="Test a filename pattern")
    p_parse.add_argument("pattern", help="Filename pattern, e.g. '[artist] - [title]'")
    p_parse.add_argument("filenames", nargs="+", help="Filenames to match")
    p_parse.add_argument("--strict", action="store_true",
                         help="Reject unbalanced brackets, adjacent or unknown variables")
    p_parse.set_defaults(func=cmd_parse)

    # settings command
    p_settings = subparsers.add_parser("settings", help="Show or change settings")
    p_settings.add_argument("--directory", "-d", help="Tab directory")
    p_settings.add_argument("--pattern", help="Filename pattern")
    p_settings.add_argument("--non-capital-words", help="Comma-separated words to keep lowercase")
    p_settings.add_argument("--remove-characters", help="Characters replaced by spaces")
    p_settings.set_defaults(func=cmd_settings)

    # set-password command
    p_password = subparsers.add_parser("set-password", help="Set the admin password")
    p_password.add_argument("--password", help="New password (prompted for if omitted)")
    p_password.set_defaults(func=cmd_set_password)

    # reset-cache command
    p_reset = subparsers.add_parser("reset-cache", help="Forget all cached tabs")
    p_reset.set_defaults(func=cmd_reset_cache)

    # delete command
    p_delete = subparsers.add_parser("delete", help="Delete a tab and its file")
    p_delete.add_argument("id", help="Tab ID (see 'list')")
    p_delete.set_defaults(func=cmd_delete)

    return parser_main


def main(argv=None):
    parser_main = build_parser()
    args = parser_main.parse_args(argv)

    if not args.command:
        parser_main.print_help()
        sys.exit(1)

    setup_logging(args.verbose)

    try:
        args.func(args)
    except (TabServerError, FileNotFoundError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    except redis.RedisError as e:
        print(f"Error: could not reach Redis at {args.redis_url}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
