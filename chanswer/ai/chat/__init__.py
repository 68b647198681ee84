"""Tool-augmented streaming chat turn."""
