"""Playwright glue for the extract package."""
