"""Tools exposed to clients.

Provides the tool protocol, the registry, and the tools that generate
text and publish it through the record pipeline.
"""
