"""Client-side favorites synchronization for the storefront.

The package keeps a per-identity set of favorited product identifiers in sync
with the e-commerce REST API, mirrors it into a local key-value store so it
survives restarts, and fans out per-product change notifications to any number
of subscribers.
"""

__version__ = "0.1.0"
