"""Model provider adapters (Gemini, Anthropic)."""
