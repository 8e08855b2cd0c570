"""HTTP and WebSocket API for Linkboard."""
