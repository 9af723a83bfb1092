"""
Import Fixer Package.

This package provides the ``ImportFixer`` class, a LibCST transformer responsible for:
1.  **Pruning**: Removing imports whose bindings are no longer referenced.
2.  **Injection**: Adding the imports new references need, in sorted position.

Which imports to touch is decided beforehand by :class:`ImportResolver`.
"""

from codemorph.core.import_fixer.base import BaseImportFixer
from codemorph.core.import_fixer.imports_mixin import ImportMixin
from codemorph.core.import_fixer.injection_mixin import InjectionMixin
from codemorph.core.import_fixer.resolution import (
  ImportReq,
  ImportRequests,
  ImportResolver,
  ResolutionPlan,
)


class ImportFixer(ImportMixin, InjectionMixin, BaseImportFixer):
  """
  Composite Transformer for reconciling a module's import list.

  Inherits functionality from:
  - :class:`ImportMixin`: pruning aliases from import statements.
  - :class:`InjectionMixin`: inserting new top-level imports.
  - :class:`BaseImportFixer`: plan and state management.
  """


__all__ = [
  "ImportFixer",
  "ImportReq",
  "ImportRequests",
  "ImportResolver",
  "ResolutionPlan",
]
