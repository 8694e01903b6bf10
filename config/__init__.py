"""Configuration package for the proxy.

Main components:
- config.py: YAML schema, backend URL type, parser and loader
- service.py: Facade for simplified configuration access
"""
