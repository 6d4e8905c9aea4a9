"""EduCloud: academic PDF storage with AI-assisted study material."""

__version__ = "0.1.0"
