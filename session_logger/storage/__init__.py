"""storage package for Session Logger."""
