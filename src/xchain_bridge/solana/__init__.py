"""Solana token bridge builder, account derivation and instruction encoders."""
