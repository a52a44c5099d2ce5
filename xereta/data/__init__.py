"""Reference datasets: domain blocklist and cookie classification table."""
