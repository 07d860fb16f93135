"""Daily generated developer quiz: storage, question generation, scheduling and web app."""

__version__ = "0.1.0"