"""Runnable front ends of the discordterm client."""
