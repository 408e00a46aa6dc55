from .client import AppleMusicClient
from .developer_token import (
    DeveloperTokenCache,
    decode_developer_token,
    generate_developer_token,
    is_valid_apple_music_token,
)

__all__ = [
    "AppleMusicClient",
    "DeveloperTokenCache",
    "decode_developer_token",
    "generate_developer_token",
    "is_valid_apple_music_token",
]
