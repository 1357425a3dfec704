"""Remote service clients wrapping the e-commerce REST API."""
