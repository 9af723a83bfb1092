"""
Node Serialization for Trace Diffs.

Renders detached LibCST nodes to source text "in vacuum", so the state of a
node before and after a rewrite can be recorded without printing the whole file.
"""

import libcst as cst

# A dummy module used as a context to render detached nodes.
_RENDER_CTX = cst.parse_module("")


def capture_node_source(node: cst.CSTNode) -> str:
  """
  Renders a LibCST node into its Python source code string representation.

  Args:
      node: The CST node to serialise.

  Returns:
      str: The Python code string.
  """
  return _RENDER_CTX.code_for_node(node)

