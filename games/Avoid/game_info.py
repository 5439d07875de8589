"""Avoid - Game Info

Dodge four bouncing obstacles until the timer runs out.
"""

GAME_ID = "avoid"
NAME = "Avoid"
DESCRIPTION = "Dodge the bouncing obstacles until time runs out"
VERSION = "1.0.0"
AUTHOR = "Macrogame Team"
CONTROLS = "Arrow keys / WASD to move"
