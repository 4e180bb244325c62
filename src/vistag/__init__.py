"""vistag: image title, description and tag generation backed by vision-language models."""

__version__ = "1.0.0"
