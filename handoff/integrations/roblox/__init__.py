"""Roblox users, thumbnails and web integration."""
