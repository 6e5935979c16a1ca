"""Filtering, scoring, quality cutoff and ordering of task records."""
