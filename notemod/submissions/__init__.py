"""Submission records and the persistence contract they are stored behind."""
