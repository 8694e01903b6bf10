"""Output channels the proxy writes its access, sync and main logs to."""
