"""LLM Gateway: one request/response model in front of many vendor chat APIs."""
