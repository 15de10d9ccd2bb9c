"""Report assembly and artifact output."""
