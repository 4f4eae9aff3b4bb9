"""Key sources, public-key codec and address derivation."""
