"""Filtered, paginated views over submissions."""
