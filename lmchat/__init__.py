"""A terminal chat client for local OpenAI-compatible inference servers."""
