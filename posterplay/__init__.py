"""posterplay: multi-platform authentication and session core.

Spotify OAuth and Apple Music MusicKit sign-in behind one cookie-backed
session model, plus a client-side session controller for the web shell.
"""

__version__ = "0.4.0"
