"""Theme service: per-user and site-wide themes rendered as CSS."""
