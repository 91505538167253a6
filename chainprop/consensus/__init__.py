"""Pluggable consensus strategies."""

from chainprop.consensus.base import ConsensusAlgorithm
from chainprop.consensus.pow import ProofOfWork

__all__ = ["ConsensusAlgorithm", "ProofOfWork"]
