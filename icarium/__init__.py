"""Push-triggered container image builder."""
