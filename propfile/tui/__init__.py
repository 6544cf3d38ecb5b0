"""Textual viewer for .properties files (requires the 'tui' extra)."""
