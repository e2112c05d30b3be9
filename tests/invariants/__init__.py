"""
Enforcement Invariants

Property-based checks of the guarantees every defended object carries:
closed attribute sets, kind-preserving writes, irreversible release, shape
consistency across instances and detection of construction without new().

These are not implementation details; they must hold for any class built
through the construction protocol.
"""
