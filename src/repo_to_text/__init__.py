"""repo_to_text: flatten a directory tree into a single text file for an LLM."""

__version__ = "0.1.0"
