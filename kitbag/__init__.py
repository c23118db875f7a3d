"""Small self-contained algorithms: expressions, BGZF files, HMMs, trees and numerics."""

__version__ = "0.1.0"

__all__ = [
    "bgzf",
    "eigen",
    "expr",
    "hmm",
    "kson",
    "newick",
    "optimize",
    "rmq",
    "special",
    "suffix_array",
]