"""notemod -- moderation back-office for user-submitted travel notes."""

__version__ = "0.1.0"
