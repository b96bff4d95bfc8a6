"""Terminal video player application."""
