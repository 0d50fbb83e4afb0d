"""Order management HTTP service: create, list and delete orders."""
