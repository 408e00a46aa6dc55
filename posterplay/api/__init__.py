from .auth import router as auth_router
from .health import router as health_router
from .oauth_apple_music import router as apple_music_router
from .oauth_spotify import router as spotify_router

__all__ = ["apple_music_router", "auth_router", "health_router", "spotify_router"]
