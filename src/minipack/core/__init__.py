"""
Core Package.

Contains the bundling pipeline:
- Lifecycle hooks and plugin loading
- Source transformer (loader rules)
- Module rewriter (load-expression rewriting)
- Module graph builder
- Bundle emitter
- Compiler orchestration
"""
