"""Adobe Target Admin API activity tools."""
