"""FastAPI layer: routers, persistence and the training job simulator."""
