"""Cross-cutting HTTP concerns: logging, errors, request ids, rate limits, CORS."""
