"""Services used by the fork command handlers."""
