"""Generate git commit messages from the staged diff with Gemini or OpenAI."""

__version__ = "0.3.0"
