from .oauth import ProviderErrorKind, ProviderRequestError, SpotifyOAuth

__all__ = ["ProviderErrorKind", "ProviderRequestError", "SpotifyOAuth"]
