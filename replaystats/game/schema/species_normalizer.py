"""Canonical species names for usage statistics."""

from types import MappingProxyType
from typing import AbstractSet, Mapping, Optional

# Species whose forms are cosmetic (or irrelevant for usage): every
# "Base-Form" label collapses to "Base".
COLLAPSED_FORM_SPECIES: AbstractSet[str] = frozenset(
    {
        "Urshifu",
        "Mimikyu",
        "Minior",
        "Toxtricity",
        "Genesect",
        "Eiscue",
        "Sawsbuck",
        "Deerling",
        "Alcremie",
        "Pikachu",
        "Vivillon",
        "Florges",
        "Flabebe",
        "Floette",
        "Furfrou",
    }
)

# Named forms counted as their base species.
FORM_OVERRIDES: Mapping[str, str] = MappingProxyType(
    {
        "Gastrodon-East": "Gastrodon",
        "Shellos-East": "Shellos",
        "Basculin-Blue-Striped": "Basculin",
        "Polteageist-Antique": "Polteageist",
        "Keldeo-Resolute": "Keldeo",
    }
)

TOTEM_SUFFIX = "-Totem"

FORM_SEPARATOR = "-"


def canonicalize_species(
    label: str,
    collapsed: Optional[AbstractSet[str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> str:
    """Map a raw species label to the species used for statistics.

    Rules are tried in order and the first match wins: collapsed-form
    species, exact form overrides, then the totem suffix. Anything else is
    returned unchanged. The function is idempotent.

    Args:
        label: Species as written in the log (e.g., "Vivillon-Pokeball")
        collapsed: Collapsed-form table, defaults to COLLAPSED_FORM_SPECIES
        overrides: Override table, defaults to FORM_OVERRIDES

    Returns:
        Canonical species name

    Examples:
        >>> canonicalize_species("Urshifu-Rapid-Strike")
        'Urshifu'
        >>> canonicalize_species("Gastrodon-East")
        'Gastrodon'
        >>> canonicalize_species("Kommo-o-Totem")
        'Kommo-o'
        >>> canonicalize_species("Landorus-Therian")
        'Landorus-Therian'
    """
    if collapsed is None:
        collapsed = COLLAPSED_FORM_SPECIES
    if overrides is None:
        overrides = FORM_OVERRIDES

    base = species_root(label)
    if base in collapsed and (label == base or label.startswith(base + FORM_SEPARATOR)):
        return base

    if label in overrides:
        return overrides[label]

    if label.endswith(TOTEM_SUFFIX) and label != TOTEM_SUFFIX:
        return canonicalize_species(label[: -len(TOTEM_SUFFIX)], collapsed, overrides)

    return label


def species_root(label: str) -> str:
    """Species name without any form qualifier ("Rotom-Wash" -> "Rotom")."""
    return label.split(FORM_SEPARATOR, 1)[0]


def same_species_root(a: str, b: str) -> bool:
    return a == b or species_root(a) == species_root(b)
