"""On-demand analysis: collect observations, then score them."""
