"""Adaptors for upstream cloud SDKs."""
