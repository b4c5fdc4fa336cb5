"""
Basic structure format conversion example.

This example demonstrates how to:
1. Build molecules and crystals
2. Write and read them in several file formats
3. Generate supercells and inspect bonds
"""

from acoord.core import (
    Atom,
    GaussianSettings,
    GJFCodec,
    Structure,
    UnitCell,
    get_supported_formats,
    parse_structure,
    serialize_structure,
)


def main():
    """Run basic format conversions."""
    print("ACoord Basic Format Conversion Example")
    print("=" * 50)

    # Create a water molecule
    water = Structure(
        name="water",
        atoms=[
            Atom.at("O", [0.0000, 0.0000, 0.1173]),
            Atom.at("H", [0.0000, 0.7572, -0.4692]),
            Atom.at("H", [0.0000, -0.7572, -0.4692]),
        ],
    )

    print(f"Created molecule: {water.name}")
    print(f"Number of atoms: {len(water)}")
    print(f"Number of bonds: {len(water.get_bonds())}")
    print()

    print("Supported formats:")
    for tag, extensions in get_supported_formats().items():
        print(f"  {tag:8s} {', '.join(extensions)}")
    print()

    # Gaussian input with custom header
    codec = GJFCodec(settings=GaussianSettings(route="#P B3LYP/6-31G(d) Opt"))
    print(codec.serialize(water))

    # Rock salt crystal written as POSCAR and read back
    cell = UnitCell(a=5.64, b=5.64, c=5.64)
    nacl = Structure(name="NaCl", unit_cell=cell, is_crystal=True)
    nacl.add_atom(Atom.at("Na", cell.fractional_to_cartesian([0.0, 0.0, 0.0])))
    nacl.add_atom(Atom.at("Cl", cell.fractional_to_cartesian([0.5, 0.5, 0.5])))

    poscar = serialize_structure(nacl, "POSCAR")
    print(poscar)

    restored = parse_structure(poscar, "POSCAR")
    print(f"Restored {restored.name}: {len(restored)} atoms, volume {restored.unit_cell.volume:.3f} A^3")

    supercell = restored.generate_supercell(2, 2, 2)
    print(f"Supercell {supercell.name}: {len(supercell)} atoms")
    print()

    print(serialize_structure(supercell, "cif")[:400])


if __name__ == "__main__":
    main()
