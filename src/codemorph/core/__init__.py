"""
Core Package.

Contains the rewriting backend:
- Tree model and scanners
- Matchers and mapping tables
- Rewrite visitor and rules
- Import resolution and fixing
- Transformation units, composite pipelines and the engine
"""
