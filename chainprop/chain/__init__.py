"""Chain model: immutable blocks forming a shared tree."""

from chainprop.chain.block import Block, ProofOfWorkBlock

__all__ = ["Block", "ProofOfWorkBlock"]
