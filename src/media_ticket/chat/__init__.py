"""Streaming chat proxy over the model provider."""
