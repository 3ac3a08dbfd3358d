"""Prompt templates sent to Gemini."""
