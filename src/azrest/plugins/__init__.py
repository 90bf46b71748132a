"""Built-in plugins shipped with azrest."""
