"""
Atom Registry

Maps the atom names usable in declarative rule definitions to the factory
functions that build them. The built-in atoms are registered explicitly below;
applications can add their own with ``register_atom``.
"""

from typing import Callable, Dict, List, Optional, Set

from compliance.services.evaluator import matchers
from compliance.services.evaluator.matchers import RuleMatcher

AtomFactory = Callable[..., RuleMatcher]

atoms: Dict[str, AtomFactory] = {}

# Atoms whose argument is itself a matcher node and must be compiled first
MATCHER_ARGUMENT_ATOMS: Set[str] = set()


def register_atom(name: str, factory: AtomFactory, takes_matcher: bool = False) -> None:
    """
    Register an atom under ``name``.

    Args:
        name: The name used in rule definitions
        factory: Callable returning a RuleMatcher
        takes_matcher: True if the single argument is a nested matcher node
    """
    if name in ("all", "any", "not"):
        raise ValueError(f"'{name}' is reserved for combinators")
    atoms[name] = factory
    if takes_matcher:
        MATCHER_ARGUMENT_ATOMS.add(name)
    else:
        MATCHER_ARGUMENT_ATOMS.discard(name)


def get_atom(name: str) -> Optional[AtomFactory]:
    """
    Get an atom factory by name.

    Returns:
        The factory if registered, None otherwise
    """
    return atoms.get(name)


def get_all_atom_names() -> List[str]:
    return sorted(atoms.keys())


def takes_matcher(name: str) -> bool:
    return name in MATCHER_ARGUMENT_ATOMS


def register_builtin_atoms() -> None:
    register_atom("is_at_tree_level", matchers.is_at_tree_level)
    register_atom("is_project_from_org", matchers.is_project_from_org)
    register_atom("is_statically_linked", matchers.is_statically_linked)
    register_atom("is_project", matchers.is_project)
    register_atom("is_in_scope", matchers.is_in_scope)
    register_atom("is_excluded", matchers.is_excluded)
    register_atom("has_ancestor", matchers.has_ancestor, takes_matcher=True)
    register_atom("is_from_org", matchers.is_from_org)
    register_atom("is_type", matchers.is_type)
    register_atom("has_concluded_license", matchers.has_concluded_license)
    register_atom("has_license", matchers.has_license)
    register_atom("contains_license", matchers.contains_license)
    register_atom("is_license", matchers.is_license)
    register_atom("is_license_source", matchers.is_license_source)


register_builtin_atoms()
