"""Blend pool contract: payload parsing and request encoding."""
from . import encoder, parser

__all__ = ["encoder", "parser"]
