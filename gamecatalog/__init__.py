"""
GameCatalog - shared PS1/PS2/PSP game catalog with per-user libraries
"""

__version__ = "0.1.0"
