"""HTTP middleware: correlation id, rate limit."""
