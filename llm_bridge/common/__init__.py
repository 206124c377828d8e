"""Shared infrastructure: errors, retry, HTTP client and content helpers."""
