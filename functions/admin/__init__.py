"""DLQ admin operations and transports."""
