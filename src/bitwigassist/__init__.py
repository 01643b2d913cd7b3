"""BitwigAssist - Conversational assistant for Bitwig Studio.

Answers questions about Bitwig Studio from a canned knowledge base and can
execute the matching action plan against a running Bitwig Studio instance.
"""

__version__ = "0.1.0"
