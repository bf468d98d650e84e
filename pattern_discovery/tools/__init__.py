"""Tool callables exposed to LLM clients."""
