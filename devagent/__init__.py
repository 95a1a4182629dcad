"""
DevAgent - turns a natural-language task into file edits with a Gemini model.
"""

__version__ = "0.1.0"
