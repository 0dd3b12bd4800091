"""Command line helpers for planning and inspecting routes."""
