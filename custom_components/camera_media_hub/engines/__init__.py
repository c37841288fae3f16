"""Backend specific camera engines."""
