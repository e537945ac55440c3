"""termtheme - switch terminal emulator color themes."""
__version__ = "1.0.0"
