"""User-facing interfaces (command line) for devportal."""
