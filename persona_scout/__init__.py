"""Persona Scout - builds persona documents from LinkedIn and X profiles."""
__version__ = "1.0.0"
