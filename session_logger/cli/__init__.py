"""cli package for Session Logger."""
