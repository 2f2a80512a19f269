"""Family generators and the registry composing them."""
