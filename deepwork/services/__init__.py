"""Planning engine services: scheduling, validation and the planning conversation."""
