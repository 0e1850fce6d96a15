"""Storage access for the keyword index.

Index and data files may live on a local disk, in an S3 bucket or in process
memory; ``kwindex.core.storage.resolve`` turns any of those path strings into
a store and an object path.
"""

__all__ = ["core"]
