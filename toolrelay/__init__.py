"""
toolrelay - MCP Tool-Call Orchestration

Exposes MCP tools to OpenAI, Anthropic and Gemini models, runs the calls
they make with user confirmation, and turns the results into the messages
each provider expects next.
"""

__version__ = "0.1.0"
