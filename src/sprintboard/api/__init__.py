"""HTTP/JSON API for sprintboard."""
