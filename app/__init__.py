"""Category hierarchy service for the storefront admin panel."""

__version__ = "0.1.0"
