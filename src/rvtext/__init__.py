"""rvtext: extract RPG Maker game text into translation files and write it back."""

__version__ = "1.0.0"
