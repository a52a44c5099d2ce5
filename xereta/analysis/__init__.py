"""Privacy analysis over collected observations."""
