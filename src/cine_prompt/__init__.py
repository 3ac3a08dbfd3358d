"""CinePrompt: storyboard and transition prompt generation on Gemini."""

__version__ = "0.3.0"
