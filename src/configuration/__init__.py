"""Settings groups loaded from the environment and `.env`."""
