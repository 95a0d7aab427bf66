"""Hall booking, registration and billing administration core."""

__version__ = "1.0.0"
