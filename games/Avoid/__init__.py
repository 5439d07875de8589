"""Avoid - reference minigame: dodge the bouncing obstacles."""
