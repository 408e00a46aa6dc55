"""Auth core: error taxonomy, shared models and the cookie session store."""
