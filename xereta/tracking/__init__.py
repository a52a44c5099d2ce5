"""Third-party activity tracking: domain classification, cookie parsing, per-tab state."""
