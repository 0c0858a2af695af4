"""skillmanager - browse, install and publish assistant skill packages."""

__version__ = "0.1.0"
