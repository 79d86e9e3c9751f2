"""Infrastructure adapters (HTTP session pipeline, logging) for devportal."""
