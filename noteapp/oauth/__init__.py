"""OAuth provider clients."""

from noteapp.oauth.google import GoogleOAuthClient

__all__ = ["GoogleOAuthClient"]
