"""BitwigAssist services."""
