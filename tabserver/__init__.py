"""
Guitar Tab Server Library

Modules:
    pattern   - Filename pattern tokenizing and matching
    catalog   - Tab directory scanning and caching pipeline
    cache     - Redis storage of parsed tabs
    settings  - Persisted settings and the admin password
    transform - Title/artist clean-up for display
    chords    - Chord extraction for highlighting
    search    - Filtering and sorting of listings
    server    - Flask web app and JSON API
"""
