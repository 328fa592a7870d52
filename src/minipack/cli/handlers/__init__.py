"""Command handler implementations."""
