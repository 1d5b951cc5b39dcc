"""CLI module for framebus."""
