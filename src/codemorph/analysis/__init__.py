"""
Static Analysis Package.

Visitors that inspect a module before it is rewritten.

Modules:
    - ``symbol_table``: Import bindings and top-level definitions of a module.
"""
