"""Audit trail for moderation and authentication events."""
