"""pcbcore — PCB autorouting and design rule checking."""

__version__ = "0.1.0"
