"""Find git repositories below a directory and report their uncommitted changes."""

__version__ = "0.1.0"
