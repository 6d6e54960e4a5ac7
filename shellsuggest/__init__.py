"""shellsuggest - terminal completion daemon with an interactive picker."""

__version__ = "0.1.0"
