"""Domain services for storing uploads and producing study material."""
