"""SVG label templates bundled with pinv (gzip-compressed)."""
