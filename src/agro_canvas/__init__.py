"""Project data core for the Agroecologia Desenhada design canvas."""

__version__ = "0.1.0"
