"""PharmaGuard — pharmacogenomic drug-risk inference from VCF data."""

__version__ = "1.0.0"
