"""Request/response messaging between the tracker, the page and the presenter."""
