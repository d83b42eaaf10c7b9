"""
Shared utilities for the library panels service.

- logging_config: root logger setup used by the service entrypoint
"""
