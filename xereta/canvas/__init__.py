"""Canvas fingerprinting detection."""
