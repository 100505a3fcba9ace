"""
Generators — produce config files from declarative descriptions.

Generators are pure: they return ``GeneratedFile`` content and never
touch the filesystem.
"""
