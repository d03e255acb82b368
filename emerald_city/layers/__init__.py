"""Cipher layers: capabilities, key derivation, keystream and the round chain."""
