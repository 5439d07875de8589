"""Minigame plugins. Each subdirectory with a game_mode.py is one minigame."""
