"""syncbot: Discord ⇄ GroupMe sync bridge."""

__version__ = "0.3.0"
