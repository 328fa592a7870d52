"""
Built-in Plugins.

Plugins are enabled by reference in the configuration, e.g.
``plugins = ["minipack.plugins.stats:StatsPlugin"]``.
"""
