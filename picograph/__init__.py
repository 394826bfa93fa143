"""picoGraph: blueprint node graphs compiled to PICO-8 Lua."""

__version__ = "0.3.0"
