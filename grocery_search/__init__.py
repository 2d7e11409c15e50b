"""AI-assisted product search service for the Ghibli Groceries storefront."""

__version__ = "1.0.0"
