"""lazconv - batch point-cloud conversion driven by PotreeConverter."""

__version__ = "0.1.0"
