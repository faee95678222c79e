"""FastAPI surface over the actuator pipeline entry points."""
