"""Voice task assistant: command resolution and resilient task API calls."""

__version__ = "0.1.0"
