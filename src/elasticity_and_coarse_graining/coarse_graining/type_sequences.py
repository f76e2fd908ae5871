"""Type sequences.

Interactions are identified by the forcefield types of the beads they involve. The sequences are put in a
canonical order so that equivalent interactions (for example A-B and B-A bonds) share one name.
"""
from typing import List, Sequence

# The forcefield document restricts the type names in length.
MAXIMUM_FORCEFIELD_TYPE_LENGTH = 4

TYPE_SEPARATOR = ","


def get_forcefield_type(forcefield_type: str, bead_type_name: str) -> str:
    """The bead's forcefield type, derived from its bead type name when it is not defined."""
    if len(forcefield_type) > 0:
        return forcefield_type
    return bead_type_name[:MAXIMUM_FORCEFIELD_TYPE_LENGTH]


def get_unique_types(types: Sequence[str]) -> List[str]:
    """Unique types, in order of first appearance."""
    return list(dict.fromkeys(types))


def get_bond_type_sequence(type1: str, type2: str) -> str:
    """Bond sequence, with the types sorted."""
    return TYPE_SEPARATOR.join(sorted([type1, type2]))


def get_angle_type_sequence(type1: str, central_type: str, type3: str) -> str:
    """Angle sequence, with the end types sorted around the central type."""
    first, last = sorted([type1, type3])
    return TYPE_SEPARATOR.join([first, central_type, last])


def get_torsion_type_sequence(type1: str, type2: str, type3: str, type4: str) -> str:
    """Torsion sequence, reversed if the second type sorts after the third."""
    types = [type1, type2, type3, type4]
    if types[1] > types[2]:
        types = types[::-1]
    return TYPE_SEPARATOR.join(types)


def get_non_bond_type_sequences(types: Sequence[str], use_cross_terms: bool) -> List[str]:
    """Non-bond sequences.

    Args:
        types: forcefield types present in the structure.
        use_cross_terms: if True, the interactions between distinct types are fitted too. Otherwise they
            are obtained from a combination rule and only the self terms are needed.

    Returns:
        type_sequences: self terms first, then the cross terms if requested.
    """
    unique_types = get_unique_types(types)

    type_sequences = [TYPE_SEPARATOR.join([t, t]) for t in unique_types]
    if use_cross_terms:
        for i, type1 in enumerate(unique_types):
            for type2 in unique_types[i + 1:]:
                type_sequences.append(TYPE_SEPARATOR.join([type1, type2]))
    return type_sequences
