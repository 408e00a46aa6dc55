"""Provider clients: Spotify OAuth and the Apple Music token codec."""
