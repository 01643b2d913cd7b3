"""HTTP API for BitwigAssist."""
