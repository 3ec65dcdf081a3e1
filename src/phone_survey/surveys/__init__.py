"""Questions, surveys and the built-in healthcare access script."""
