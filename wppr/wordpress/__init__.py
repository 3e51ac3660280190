"""WordPress specific parts of wppr.

Submodules:
- plugin: managed plugin descriptor and version parsing
- composer: composer.json manifest
- cli: WP-CLI wrapper
"""
