"""GesPadel tournament and registration core."""
