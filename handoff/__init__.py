"""Handoff Verify: purchase and Roblox account verification before delivery."""
