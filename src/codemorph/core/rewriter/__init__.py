"""
Rewriter Package.

This package provides the `RewriteVisitor`, a single top-down traversal that
dispatches each node to the rules registered for its type, plus the rules the
built-in transformation units are made of:
- RetargetSupertypeRule: Base classes of class definitions.
- MigrateReferenceRule: `Owner.MEMBER` constant references.
- ChangeTypeRule: Any reference to a type.
"""

from codemorph.core.rewriter.interface import RewriteRule, RuleContext
from codemorph.core.rewriter.rules import (
  ChangeTypeRule,
  MigrateReferenceRule,
  RetargetSupertypeRule,
  describe_rules,
)
from codemorph.core.rewriter.visitor import RewriteVisitor

__all__ = [
  "ChangeTypeRule",
  "MigrateReferenceRule",
  "RetargetSupertypeRule",
  "RewriteRule",
  "RewriteVisitor",
  "RuleContext",
  "describe_rules",
]
