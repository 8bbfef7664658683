"""Second Brain API: a personal knowledge base organised into shareable brains."""

__version__ = "1.0.0"
