"""Command-line interface for the catalog scraper."""
